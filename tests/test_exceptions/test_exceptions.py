"""测试物化路径异常体系"""

import pytest

from yancestry.exceptions import (
    AncestryError,
    ConfigurationError,
    CycleError,
    ErrorCode,
    IntegrityError,
    StateError,
    ValidationError,
)


class TestDefaults:
    """默认消息与错误代码"""

    @pytest.mark.parametrize("exc_class,code", [
        (AncestryError, ErrorCode.ANCESTRY_ERROR),
        (ConfigurationError, ErrorCode.CONFIGURATION_ERROR),
        (ValidationError, ErrorCode.VALIDATION_ERROR),
        (CycleError, ErrorCode.CYCLE_DETECTED),
        (StateError, ErrorCode.UNSAVED_NODE),
        (IntegrityError, ErrorCode.RESTRICTED_DELETE),
    ])
    def test_default_code(self, exc_class, code):
        exc = exc_class()

        assert exc.code == code
        assert exc.message == exc_class.default_message
        assert str(exc) == exc_class.default_message

    def test_subclasses_share_base(self):
        for exc_class in (ConfigurationError, ValidationError, CycleError, StateError, IntegrityError):
            assert issubclass(exc_class, AncestryError)

    def test_error_code_is_str(self):
        assert ErrorCode.INVALID_ANCESTRY == "INVALID_ANCESTRY"


class TestPayload:
    """自定义消息、代码与上下文"""

    def test_custom_message_and_code(self):
        exc = ValidationError("路径格式错误", code=ErrorCode.INVALID_ANCESTRY, value="1//2")

        assert exc.message == "路径格式错误"
        assert exc.code == ErrorCode.INVALID_ANCESTRY
        assert exc.extra == {"value": "1//2"}

    def test_to_dict(self):
        exc = IntegrityError(details=["子节点: 2"], node_id=1, child_ids=[2])

        data = exc.to_dict()
        assert data["code"] == ErrorCode.RESTRICTED_DELETE
        assert data["details"] == ["子节点: 2"]
        assert data["extra"] == {"node_id": 1, "child_ids": [2]}

    def test_to_dict_copies_extra(self):
        exc = IntegrityError(child_ids=[2])

        exc.to_dict()["extra"]["child_ids"].append(3)
        assert exc.extra["child_ids"] == [2]

    def test_repr(self):
        assert repr(CycleError("循环")).startswith("CycleError(message='循环'")

    def test_catch_by_base(self):
        with pytest.raises(AncestryError):
            raise StateError(node_id=None)

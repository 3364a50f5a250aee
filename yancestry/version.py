"""版本信息"""

__version__ = "0.1.0"
__author__ = "yancestry contributors"
__description__ = "SQLAlchemy 物化路径（Materialized Path）树形结构库"

"""
Analysis charts compiled to ibis query plans.
"""

from .chart import (
    AnalysisChart,
    analysis_chart,
)
from .chart_config import (
    AxisChartConfig,
    DonutChartConfig,
    MetricChartConfig,
    TableChartConfig,
    parse_chart_config,
)
from .compiler import (
    compile_chart,
    list_chart_types,
    register_compiler,
    run_chart,
)
from .config import (
    options,
)
from .engine import (
    IbisQuery,
)
from .errors import (
    ChartTypeMismatchError,
    ConfigError,
    ConflictingFieldsError,
    MissingFieldError,
    StorageError,
    UnknownChartTypeError,
    UnknownColumnError,
)
from .filters import (
    Filter,
)
from .model import (
    DataModel,
    to_data_model,
)
from .ops import (
    Dimension,
    Measure,
)
from .plan import (
    QueryPlan,
)
from .storage import (
    JsonFileStore,
    MemoryStore,
)
from .yaml import (
    ChartDefinition,
    from_yaml,
)

__all__ = [
    "to_data_model",
    "DataModel",
    "Dimension",
    "Measure",
    "AxisChartConfig",
    "MetricChartConfig",
    "DonutChartConfig",
    "TableChartConfig",
    "parse_chart_config",
    "compile_chart",
    "run_chart",
    "register_compiler",
    "list_chart_types",
    "QueryPlan",
    "IbisQuery",
    "Filter",
    "AnalysisChart",
    "analysis_chart",
    "MemoryStore",
    "JsonFileStore",
    "ChartDefinition",
    "from_yaml",
    "options",
    "ConfigError",
    "MissingFieldError",
    "ConflictingFieldsError",
    "UnknownColumnError",
    "UnknownChartTypeError",
    "ChartTypeMismatchError",
    "StorageError",
]

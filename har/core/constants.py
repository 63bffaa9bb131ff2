"""Constants used throughout HAR."""

# Environment variables
ENV_DEBUG = "HAR_DEBUG"
ENV_LOG_LEVEL = "HAR_LOG_LEVEL"
ENV_LOG_JSON = "HAR_LOG_JSON"
ENV_LOG_FILE = "HAR_LOG_FILE"
ENV_PARTITION_DROPPED_EDGES = "HAR_PARTITION_DROPPED_EDGES"
ENV_DISPLAY_PARAM_LIMIT = "HAR_DISPLAY_PARAM_LIMIT"

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})

# Partition policies for edges whose endpoints land in different partitions
DROPPED_EDGES_IGNORE = "ignore"
DROPPED_EDGES_WARN = "warn"

DEFAULT_DISPLAY_PARAM_LIMIT = 3

# Graph metadata keys
PARTITION_KEY = "partition_key"
MERGED_FROM_KEY = "merged_from"

# Parameter names inspected by operation validation
PARAM_NAME = "name"
PARAM_PACKAGE = "package"
PARAM_SERVICE = "service"
PARAM_PATH = "path"
PARAM_CONTENT = "content"
PARAM_SOURCE = "source"
PARAM_CONTENT_OR_SOURCE = "content_or_source"

# Serialised IR schema version
IR_SCHEMA_VERSION = "1.0.0"

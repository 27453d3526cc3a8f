"""Constants for the MySQL Operator."""

# API Group
API_GROUP = "database.cloud37.dev"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_MYSQL = "MySQL"
KIND_STATEFULSET = "StatefulSet"
KIND_SERVICE = "Service"

# Plurals
PLURAL_MYSQL = "mysqls"

# Labels
LABEL_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"

# Field Manager
FIELD_MANAGER = "mysql-operator"
CONTROLLER_NAME = "mysql-operator"

# Defaults
DEFAULT_IMAGE = "mysql:8.0"
DEFAULT_PORT = 3306
DEFAULT_STORAGE_SIZE = "1Gi"
DEFAULT_SERVICE_TYPE = "ClusterIP"
DEFAULT_PASSWORD_KEY = "password"

# Topologies
TOPOLOGY_STANDALONE = "Standalone"
TOPOLOGY_REPLICATION = "Replication"
TOPOLOGY_GROUP_REPLICATION = "GroupReplication"

# Condition Types
COND_INITIALIZED = "Initialized"
COND_READY = "Ready"

# Event Types
EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

# Event Reasons
EVENT_REASON_STS_CREATED = "StatefulSetCreated"
EVENT_REASON_STS_CREATE_FAILED = "StatefulSetCreateFailed"
EVENT_REASON_CLUSTER_INITIALIZED = "ClusterInitialized"
EVENT_REASON_CLUSTER_READY = "ClusterReady"
EVENT_REASON_CLUSTER_NOT_READY = "ClusterNotReady"

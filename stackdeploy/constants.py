"""
stackdeploy Constants

Centralized constants for magic values, defaults, and configuration.
Every value here can be overridden from stackdeploy.yml (see core/config_loader).
"""

# Environments
ENVIRONMENT_DEVELOPMENT = "development"
ENVIRONMENT_PRODUCTION = "production"
DEFAULT_ENVIRONMENT = ENVIRONMENT_DEVELOPMENT
DEFAULT_DOMAIN = "localhost"

# Project configuration file
CONFIG_FILENAME = "stackdeploy.yml"

# Compose profiles (first existing candidate wins)
DEFAULT_COMPOSE_FILES = {
    ENVIRONMENT_DEVELOPMENT: ["docker-compose.yml"],
    ENVIRONMENT_PRODUCTION: ["docker-compose.prod.yml", "docker-compose-prod.yml"],
}

# Environment files
PRODUCTION_ENV_FILE = ".env.prod"
BACKEND_ENV_FILE = "backend/.env"
BACKEND_ENV_TEMPLATE = "backend/.env.example"
FRONTEND_ENV_FILE = "frontend/.env"
WORKING_DIRECTORIES = ["nginx/ssl", "mysql/init", "logs"]

# Generated production credentials
DEFAULT_DB_USERNAME = "laravel_user"
GENERATED_SECRET_KEYS = ["DB_ROOT_PASSWORD", "DB_PASSWORD", "REDIS_PASSWORD"]
SECRET_BYTES = 32
SECRET_FILE_PERMISSIONS = 0o600

# Services
DATABASE_SERVICE = "mysql"
APP_SERVICE = "laravel"

# Readiness gate
READINESS_MAX_ATTEMPTS = 30
READINESS_INTERVAL_SECONDS = 2
STARTUP_GRACE_SECONDS = 30
DATABASE_READY_COMMAND = ["mysqladmin", "ping", "-h", "localhost", "--silent"]

# Compose healthcheck defaults (when a key is omitted from the document)
HEALTHCHECK_DEFAULT_INTERVAL = 30.0
HEALTHCHECK_DEFAULT_TIMEOUT = 30.0
HEALTHCHECK_DEFAULT_RETRIES = 3

# Backups
BACKUP_DIR = "backups"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
BACKUP_STATE_PATHS = ["mysql_data"]
STORAGE_PATH = "backend/storage"
DATABASE_DUMP_FILENAME = "database_backup.sql"
# Password comes from the database container's own environment
DATABASE_DUMP_COMMAND = [
    "sh",
    "-c",
    'exec mysqldump -u root -p"$MYSQL_ROOT_PASSWORD" --all-databases',
]
BACKUP_MANIFEST_FILENAME = "manifest.json"

# TLS
SSL_DIR = "nginx/ssl"
SSL_CERT_FILES = ["fullchain.pem", "privkey.pem"]

# Application bootstrap
ARTISAN = ["php", "artisan"]
APP_ROOT = "/var/www/html"
WRITABLE_DIRECTORIES = ["storage", "bootstrap/cache"]
WRITABLE_OWNER = "www-data:www-data"
WRITABLE_MODE = "775"

# Health verification
WEB_PROBE_DELAY_SECONDS = 5
WEB_PROBE_TIMEOUT_SECONDS = 10
DEV_SERVER_URL = "http://localhost:5173"

# Runtime state
STATE_DIR = ".stackdeploy"
LOCK_FILENAME = ".stackdeploy.lock"

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Command timeouts (seconds)
PROBE_TIMEOUT = 30
BACKUP_DUMP_TIMEOUT = 300

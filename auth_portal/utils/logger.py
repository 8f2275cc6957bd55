"""
Logging utilities for the auth portal

Provides centralized logging configuration and an audit logger for auth events.
"""

import os
import copy
import logging
import logging.config
from typing import Optional, Dict, Any
import yaml

# Default logging configuration
DEFAULT_LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'detailed': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'json': {
            'format': '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "module": "%(module)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'default',
            'stream': 'ext://sys.stdout'
        }
    },
    'loggers': {
        'auth_portal': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False
        }
    },
    'root': {
        'level': 'INFO',
        'handlers': ['console']
    }
}


def load_config_file(config_path: str) -> Optional[Dict[str, Any]]:
    """Load a YAML logging config, returning None when unreadable"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logging.getLogger(__name__).warning(f"Failed to load logging config from {config_path}: {e}")
        return None

    if not isinstance(config, dict):
        return None
    return config


def setup_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    environment: Optional[str] = None
) -> None:
    """
    Setup logging configuration

    Args:
        config_path: Path to a YAML logging configuration file
        log_level: Override log level
        log_format: Override log format ('default', 'detailed', 'json')
        environment: Environment name whose overrides should be merged
    """
    config = None
    if config_path and os.path.exists(config_path):
        config = load_config_file(config_path)

    if not config:
        config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)

    # Apply environment-specific overrides
    environment = environment or os.getenv('ENVIRONMENT', 'development')
    if environment in config:
        env_config = config[environment]

        if 'handlers' in env_config:
            config.setdefault('handlers', {}).update(env_config['handlers'])

        if 'loggers' in env_config:
            config.setdefault('loggers', {}).update(env_config['loggers'])

    # Strip environment sections before handing the dict to dictConfig
    for key in [k for k in config if k not in DEFAULT_LOGGING_CONFIG and k not in ('incremental', 'filters')]:
        config.pop(key)

    if log_level:
        log_level = log_level.upper()
        for logger_config in config.get('loggers', {}).values():
            logger_config['level'] = log_level
        for handler_config in config.get('handlers', {}).values():
            handler_config['level'] = log_level
        if 'root' in config:
            config['root']['level'] = log_level

    if log_format and log_format in config.get('formatters', {}):
        for handler_config in config.get('handlers', {}).values():
            handler_config['formatter'] = log_format

    try:
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        logging.basicConfig(
            level=getattr(logging, log_level or 'INFO', logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        logging.getLogger(__name__).error(f"Failed to configure logging, using basic config: {e}")
        return

    logging.getLogger(__name__).info(f"Logging configured for environment: {environment}")


class AuditLogger:
    """Logger for authentication audit events"""

    def __init__(self, name: str = "auth_portal.audit"):
        self.logger = logging.getLogger(name)

    def log_auth_event(
        self,
        action: str,
        outcome: str,
        email: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log an auth action outcome for the audit trail"""
        self.logger.info(
            f"Auth action {action}: {outcome}",
            extra={
                'action': action,
                'outcome': outcome,
                'email': email,
                'details': details or {},
                'event_type': 'auth_action'
            }
        )


def get_audit_logger() -> AuditLogger:
    """Get audit logger instance"""
    return AuditLogger()

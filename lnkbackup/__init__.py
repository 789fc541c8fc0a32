import os
import logging
from logging.handlers import RotatingFileHandler


__version__ = '1.0.0'


def configure_logging(cfg, verbose=False):
    """Configure application logging"""

    logger = logging.getLogger(__name__)

    # Set log level based on environment
    debug = verbose or getattr(cfg, 'DEBUG', False)
    log_level = logging.DEBUG if debug else logging.INFO

    # Drop handlers from a previous configuration
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    # File handler
    log_dir = getattr(cfg, 'LOG_DIR', None)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'lnkbackup.log'),
            maxBytes=10485760,  # 10MB
            backupCount=10,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    logger.setLevel(log_level)
    logger.debug(f"Logging configured (level: {logging.getLevelName(log_level)})")
    return logger


def get_config(config_name=None):
    """Return the configuration class for config_name (or LNKBACKUP_ENV)."""
    if config_name is None:
        config_name = os.environ.get('LNKBACKUP_ENV', 'production')

    from lnkbackup.config import config
    if config_name not in config:
        raise ValueError(
            f"Invalid configuration: {config_name}. "
            f"Valid options: {list(config.keys())}"
        )
    return config[config_name]


def create_orchestrator(cfg, progress=None, on_archive=None):
    """
    Build a BackupOrchestrator wired from a configuration object.

    Args:
        cfg: Configuration class (see lnkbackup.config)
        progress: Optional per-entry callback (index, total, archive_path)
        on_archive: Optional callback receiving each WriteReport

    Returns:
        BackupOrchestrator instance
    """
    from lnkbackup.backup import (
        ArchiveWriter,
        BackupOrchestrator,
        ExclusionPolicy,
        ManifestBuilder,
        create_resolver,
    )

    policy = ExclusionPolicy(
        excluded_names=tuple(cfg.EXCLUDED_NAMES),
        dotfiles_hidden=cfg.HIDE_DOTFILES
    )

    return BackupOrchestrator(
        resolver=create_resolver(cfg.RESOLVER, cfg.SHORTCUT_SUFFIXES),
        builder=ManifestBuilder(policy, max_path_length=cfg.MAX_PATH_LENGTH),
        writer=ArchiveWriter(policy),
        link_pattern=cfg.LINK_PATTERN,
        archive_extension=cfg.ARCHIVE_EXTENSION,
        collision_policy=cfg.COLLISION_POLICY,
        progress=progress,
        on_archive=on_archive
    )

import os


def _env_list(name, default):
    """Read a ';'-separated list from the environment."""
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [item for item in value.split(';') if item]


class Config:
    """Base configuration"""

    DEBUG = False
    TESTING = False

    # Shortcut discovery
    LINK_PATTERN = os.environ.get('LNKBACKUP_LINK_PATTERN') or '*.lnk'
    # Localized suffixes the shell appends to new shortcut names
    SHORTCUT_SUFFIXES = _env_list('LNKBACKUP_SHORTCUT_SUFFIXES', [' - Ярлык', ' - Shortcut'])
    # 'auto', 'shell' (Windows .lnk) or 'symlink'
    RESOLVER = os.environ.get('LNKBACKUP_RESOLVER') or 'auto'

    # Exclusion
    EXCLUDED_NAMES = _env_list('LNKBACKUP_EXCLUDED_NAMES', ['desktop.ini'])
    HIDE_DOTFILES = os.environ.get('LNKBACKUP_HIDE_DOTFILES', str(os.name != 'nt')).lower() == 'true'
    MAX_PATH_LENGTH = int(os.environ.get('LNKBACKUP_MAX_PATH_LENGTH', 4096))

    # Archives
    ARCHIVE_EXTENSION = os.environ.get('LNKBACKUP_ARCHIVE_EXTENSION') or 'zip'
    # 'rename' or 'overwrite'
    COLLISION_POLICY = os.environ.get('LNKBACKUP_COLLISION_POLICY') or 'rename'

    # Logging
    LOG_DIR = os.environ.get('LNKBACKUP_LOG_DIR')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True

    # Use local data directory for development
    BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    DATA_DIR = os.path.join(BASE_DIR, 'data')
    LOG_DIR = os.environ.get('LNKBACKUP_LOG_DIR') or os.path.join(DATA_DIR, 'logs')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    LOG_DIR = None
    HIDE_DOTFILES = True
    RESOLVER = 'symlink'
    COLLISION_POLICY = 'rename'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}

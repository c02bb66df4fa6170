"""
Модуль для загрузки и валидации конфигурации приложения.

Обеспечивает централизованную загрузку параметров из config/settings.ini
с валидацией и удобным доступом к настройкам.
"""

import configparser
from pathlib import Path
from typing import Optional
from dataclasses import dataclass


COLLISION_POLICIES = ('skip', 'fail')
VERIFY_MODES = ('none', 'size', 'hash')


@dataclass
class PathsConfig:
    """Конфигурация путей: откуда и куда переносим."""
    source_root: Path
    destination_root: Path


@dataclass
class LabelsConfig:
    """Названия подкаталогов для категорий. Пустая строка отключает подкаталог."""
    projects: str = ""
    screenshots: str = ""
    footages: str = ""

    @staticmethod
    def enabled(label: Optional[str]) -> bool:
        """Проверяет, что метка задана непустой строкой."""
        return isinstance(label, str) and len(label) > 0


@dataclass
class MigratorConfig:
    """Конфигурация параметров миграции."""
    concurrency_limit: int = 16
    chunk_size: int = 1024 * 1024
    collision_policy: str = 'skip'
    verify: str = 'none'
    max_retries: int = 0
    retry_delay: float = 1.0


@dataclass
class LoggingConfig:
    """Конфигурация логирования."""
    level: str
    log_file: Path
    max_log_size: int
    backup_count: int


@dataclass
class Config:
    """Основная конфигурация приложения."""
    paths: PathsConfig
    labels: LabelsConfig
    migrator: MigratorConfig
    logging: LoggingConfig


class ConfigLoader:
    """Класс для загрузки и валидации конфигурации."""

    def __init__(self, config_path: str = "config/settings.ini"):
        """
        Инициализация загрузчика конфигурации.

        Args:
            config_path: Путь к файлу конфигурации
        """
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """
        Загружает конфигурацию из файла.

        Returns:
            Config: Объект конфигурации

        Raises:
            FileNotFoundError: Если файл конфигурации не найден
            ValueError: Если конфигурация некорректна
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Файл конфигурации не найден: {self.config_path}")

        config_parser = configparser.ConfigParser()
        config_parser.read(self.config_path, encoding='utf-8')

        try:
            self._config = Config(
                paths=self._load_paths_config(config_parser),
                labels=self._load_labels_config(config_parser),
                migrator=self._load_migrator_config(config_parser),
                logging=self._load_logging_config(config_parser)
            )

            self._validate_config()

            return self._config

        except Exception as e:
            self._config = None
            raise ValueError(f"Ошибка загрузки конфигурации: {e}")

    def _load_paths_config(self, parser: configparser.ConfigParser) -> PathsConfig:
        """Загружает конфигурацию путей."""
        section = 'paths'

        if not parser.has_section(section):
            raise ValueError(f"Секция '{section}' не найдена в конфигурации")

        source_root = parser.get(section, 'source_root', fallback='').strip()
        destination_root = parser.get(section, 'destination_root', fallback='').strip()

        # Пустые пути проверяются здесь: Path('') превращается в '.'
        if not source_root:
            raise ValueError("Исходный каталог (source_root) обязателен")
        if not destination_root:
            raise ValueError("Целевой каталог (destination_root) обязателен")

        return PathsConfig(
            source_root=Path(source_root),
            destination_root=Path(destination_root)
        )

    def _load_labels_config(self, parser: configparser.ConfigParser) -> LabelsConfig:
        """Загружает названия подкаталогов. Секция необязательна."""
        section = 'labels'

        if not parser.has_section(section):
            return LabelsConfig()

        return LabelsConfig(
            projects=parser.get(section, 'projects', fallback='').strip(),
            screenshots=parser.get(section, 'screenshots', fallback='').strip(),
            footages=parser.get(section, 'footages', fallback='').strip()
        )

    def _load_migrator_config(self, parser: configparser.ConfigParser) -> MigratorConfig:
        """Загружает конфигурацию мигратора."""
        section = 'migrator'

        if not parser.has_section(section):
            return MigratorConfig()

        return MigratorConfig(
            concurrency_limit=parser.getint(section, 'concurrency_limit', fallback=16),
            chunk_size=parser.getint(section, 'chunk_size', fallback=1024 * 1024),
            collision_policy=parser.get(section, 'collision_policy', fallback='skip').strip().lower(),
            verify=parser.get(section, 'verify', fallback='none').strip().lower(),
            max_retries=parser.getint(section, 'max_retries', fallback=0),
            retry_delay=parser.getfloat(section, 'retry_delay', fallback=1.0)
        )

    def _load_logging_config(self, parser: configparser.ConfigParser) -> LoggingConfig:
        """Загружает конфигурацию логирования."""
        section = 'logging'

        if not parser.has_section(section):
            raise ValueError(f"Секция '{section}' не найдена в конфигурации")

        log_file = Path(parser.get(section, 'log_file', fallback='logs/capture_migrate.log'))

        return LoggingConfig(
            level=parser.get(section, 'level', fallback='INFO'),
            log_file=log_file,
            max_log_size=parser.getint(section, 'max_log_size', fallback=10),
            backup_count=parser.getint(section, 'backup_count', fallback=5)
        )

    def _validate_config(self) -> None:
        """Валидирует загруженную конфигурацию."""
        if not self._config:
            raise ValueError("Конфигурация не загружена")

        validate_paths(self._config.paths)

        migrator = self._config.migrator
        if migrator.concurrency_limit <= 0:
            raise ValueError("Лимит параллельных операций должен быть больше 0")

        if migrator.chunk_size <= 0:
            raise ValueError("Размер блока копирования должен быть больше 0")

        if migrator.collision_policy not in COLLISION_POLICIES:
            raise ValueError(f"Некорректная политика коллизий: {migrator.collision_policy}")

        if migrator.verify not in VERIFY_MODES:
            raise ValueError(f"Некорректный режим проверки: {migrator.verify}")

        if migrator.max_retries < 0:
            raise ValueError("Количество попыток не может быть отрицательным")

        if migrator.retry_delay < 0:
            raise ValueError("Задержка между попытками не может быть отрицательной")

        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self._config.logging.level.upper() not in valid_levels:
            raise ValueError(f"Некорректный уровень логирования: {self._config.logging.level}")

    def get_config(self) -> Config:
        """
        Возвращает загруженную конфигурацию.

        Returns:
            Config: Объект конфигурации

        Raises:
            ValueError: Если конфигурация не загружена
        """
        if self._config is None:
            raise ValueError("Конфигурация не загружена. Вызовите load_config() сначала.")
        return self._config

    def reload_config(self) -> Config:
        """
        Перезагружает конфигурацию из файла.

        Returns:
            Config: Обновленный объект конфигурации
        """
        self._config = None
        return self.load_config()


def validate_paths(paths: PathsConfig) -> None:
    """
    Проверяет исходный и целевой каталоги.

    Используется и загрузчиком, и CLI после переопределения путей флагами.

    Raises:
        ValueError: Если исходный каталог не существует или это не каталог
    """
    source_root = Path(paths.source_root)

    if not source_root.exists():
        raise ValueError(f"Исходный каталог не существует: {paths.source_root}")

    if not source_root.is_dir():
        raise ValueError(f"Исходный путь не является каталогом: {paths.source_root}")


def load_config(config_path: str = "config/settings.ini") -> Config:
    """
    Удобная функция для быстрой загрузки конфигурации.

    Args:
        config_path: Путь к файлу конфигурации

    Returns:
        Config: Объект конфигурации
    """
    loader = ConfigLoader(config_path)
    return loader.load_config()

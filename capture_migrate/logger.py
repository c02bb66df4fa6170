"""
Модуль для настройки и управления логированием приложения.

Обеспечивает централизованную настройку логирования с ротацией файлов,
цветным выводом в консоль и отображением событий миграции.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

try:
    from .config_loader import LoggingConfig
except ImportError:
    from config_loader import LoggingConfig


LOGGER_NAME = 'capture_migrate'


class ColoredFormatter(logging.Formatter):
    """Форматтер с цветным выводом для консоли."""

    # Цветовые коды ANSI
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Форматирует запись лога с цветом."""
        # Запись общая для всех обработчиков, поэтому цвет не сохраняем в ней
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class CaptureMigrateLogger:
    """Класс для управления логированием приложения Capture Migrate."""

    def __init__(self, config: LoggingConfig):
        """
        Инициализация логгера.

        Args:
            config: Конфигурация логирования
        """
        self.config = config
        self.logger: Optional[logging.Logger] = None
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Настраивает логгер с файловым и консольным выводом."""
        self.logger = logging.getLogger(LOGGER_NAME)
        level = getattr(logging, self.config.level.upper())
        self.logger.setLevel(level)

        # Закрываем обработчики от предыдущей настройки
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)

        fmt = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        datefmt = '%Y-%m-%d %H:%M:%S'
        formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)
        colored_formatter = ColoredFormatter(fmt=fmt, datefmt=datefmt)

        log_file_path = Path(self.config.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file_path,
            maxBytes=self.config.max_log_size * 1024 * 1024,  # МБ в байты
            backupCount=self.config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(colored_formatter)
        console_handler.setLevel(level)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

        # Предотвращаем дублирование сообщений
        self.logger.propagate = False

    def get_logger(self) -> logging.Logger:
        """
        Возвращает настроенный логгер.

        Returns:
            logging.Logger: Настроенный логгер
        """
        if self.logger is None:
            raise RuntimeError("Логгер не инициализирован")
        return self.logger

    def log_migration_start(self, source_root: Path, destination_root: Path, sessions: int) -> None:
        """
        Логирует начало процесса миграции.

        Args:
            source_root: Исходный каталог
            destination_root: Целевой каталог
            sessions: Количество найденных сессий
        """
        self.logger.info("🚀 Начало миграции")
        self.logger.info(f"📂 Источник: {source_root}")
        self.logger.info(f"📁 Назначение: {destination_root}")
        self.logger.info(f"🎮 Сессий: {sessions}")

    def log_migration_end(self, moved: int, skipped: int, failed: int, duration: Optional[float]) -> None:
        """
        Логирует завершение процесса миграции.

        Args:
            moved: Перенесено элементов
            skipped: Пропущено элементов
            failed: Ошибок при переносе
            duration: Продолжительность в секундах
        """
        self.logger.info("✅ Миграция завершена")
        self.logger.info("📊 Статистика:")
        self.logger.info(f"   • Перенесено: {moved}")
        self.logger.info(f"   • Пропущено: {skipped}")
        self.logger.info(f"   • Ошибок: {failed}")
        if duration is not None:
            self.logger.info(f"⏰ Миграция заняла [{duration * 1000:.1f} ms]")

    def log_session_start(self, session_name: str, entries: int) -> None:
        """Логирует начало обработки сессии."""
        self.logger.info(f"🎮 Сессия [{session_name}]: элементов {entries}")

    def log_session_skipped(self, session_name: str, reason: str) -> None:
        """Логирует пропуск сессии."""
        self.logger.warning(f"⚠️ Пропущена сессия [{session_name}]: {reason}")

    def log_entry_moved(self, name: str, target_path: Path) -> None:
        """
        Логирует успешный перенос элемента.

        Args:
            name: Имя элемента
            target_path: Новый путь
        """
        self.logger.info(f"📁 Перенесено [{name}] → {target_path}")

    def log_entry_planned(self, name: str, target_path: Path) -> None:
        """Логирует запланированный перенос (пробный запуск)."""
        self.logger.info(f"📝 План: [{name}] → {target_path}")

    def log_entry_skipped(self, name: str, reason: str) -> None:
        """Логирует пропуск элемента."""
        self.logger.warning(f"⚠️ Пропущено [{name}]: {reason}")

    def log_entry_failed(self, name: str, error) -> None:
        """
        Логирует ошибку при переносе элемента.

        Args:
            name: Имя элемента
            error: Исключение или описание ошибки
        """
        self.logger.error(f"❌ Ошибка при переносе [{name}]: {error}")

    def log_duplicated_data(self, name: str, source_path: Path, target_path: Path) -> None:
        """
        Логирует ситуацию, когда копия записана, а источник удалить не удалось.

        Данные теперь лежат в двух местах и требуют внимания оператора.
        """
        self.logger.critical(
            f"💥 [{name}] скопирован в {target_path}, но источник {source_path} не удален. "
            f"Требуется ручная проверка"
        )

    def log_outcome(self, outcome) -> None:
        """
        Отображает итог обработки одного элемента.

        Args:
            outcome: MigrationOutcome
        """
        action = outcome.action.value
        if action == 'moved':
            self.log_entry_moved(outcome.name, outcome.destination)
        elif action == 'planned':
            self.log_entry_planned(outcome.name, outcome.destination)
        elif action == 'skipped':
            self.log_entry_skipped(outcome.name, outcome.reason)
        elif outcome.duplicated:
            self.log_duplicated_data(outcome.name, outcome.source, outcome.destination)
        else:
            self.log_entry_failed(outcome.name, outcome.reason)

    def log_retry(self, name: str, attempt: int, max_retries: int, error: Exception) -> None:
        """Логирует повторную попытку переноса."""
        self.logger.warning(f"🔁 Повтор [{name}] ({attempt}/{max_retries}): {error}")

    def log_file_operation(self, operation: str, file_path: Path, success: bool = True) -> None:
        """
        Логирует операцию с файлом.

        Args:
            operation: Тип операции (copy, delete, mkdir)
            file_path: Путь к файлу
            success: Успешность операции
        """
        status = "✅" if success else "❌"
        self.logger.debug(f"{status} {operation.upper()}: {file_path}")

    def log_system_info(self, info: str) -> None:
        """
        Логирует системную информацию.

        Args:
            info: Информационное сообщение
        """
        self.logger.info(f"ℹ️ {info}")

    def log_warning(self, message: str) -> None:
        """
        Логирует предупреждение.

        Args:
            message: Сообщение предупреждения
        """
        self.logger.warning(f"⚠️ {message}")

    def log_critical_error(self, message: str, error: Exception = None) -> None:
        """
        Логирует критическую ошибку.

        Args:
            message: Сообщение об ошибке
            error: Исключение (опционально)
        """
        if error:
            self.logger.critical(f"💥 {message}: {error}")
        else:
            self.logger.critical(f"💥 {message}")


def setup_logger(config: LoggingConfig) -> logging.Logger:
    """
    Удобная функция для быстрой настройки логгера.

    Args:
        config: Конфигурация логирования

    Returns:
        logging.Logger: Настроенный логгер
    """
    migrate_logger = CaptureMigrateLogger(config)
    return migrate_logger.get_logger()


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Получает логгер по имени.

    Args:
        name: Имя логгера

    Returns:
        logging.Logger: Логгер
    """
    return logging.getLogger(name)

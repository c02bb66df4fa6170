"""
Модуль бизнес-логики миграции.

Обходит сессии исходного каталога и для каждого элемента выполняет цепочку
классификация → вычисление пути → перенос. Ошибка одного элемента не
прерывает обработку остальных.
"""

import os
import stat
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

try:
    from .classifier import Category, classify, extract_date_bucket
    from .config_loader import Config
    from .file_ops import (
        DestinationExistsError,
        FileOperationError,
        Relocator,
        SourceCleanupError,
        VerificationError,
        create_relocator,
    )
    from .logger import CaptureMigrateLogger
    from .resolver import DestinationResolver
except ImportError:
    from classifier import Category, classify, extract_date_bucket
    from config_loader import Config
    from file_ops import (
        DestinationExistsError,
        FileOperationError,
        Relocator,
        SourceCleanupError,
        VerificationError,
        create_relocator,
    )
    from logger import CaptureMigrateLogger
    from resolver import DestinationResolver


REASON_NO_DATE = "no date"
REASON_UNCLASSIFIED = "unclassified"
REASON_NOT_A_DIRECTORY = "not a directory"
REASON_SYMLINK = "symbolic link"

# Повтор не поможет: коллизия и несовпадение копии требуют вмешательства
NON_RETRYABLE_ERRORS = (DestinationExistsError, VerificationError, SourceCleanupError)


class MigrationError(Exception):
    """Исключение для фатальных ошибок миграции."""
    pass


class Action(Enum):
    """Итог обработки элемента."""
    MOVED = 'moved'
    PLANNED = 'planned'
    SKIPPED = 'skipped'
    FAILED = 'failed'


@dataclass
class MigrationOutcome:
    """Результат обработки одного элемента."""
    session: str
    name: str
    action: Action
    category: Optional[Category] = None
    source: Optional[Path] = None
    destination: Optional[Path] = None
    reason: Optional[str] = None
    duplicated: bool = False

    def to_dict(self) -> Dict:
        return {
            'session': self.session,
            'name': self.name,
            'action': self.action.value,
            'category': self.category.value if self.category else None,
            'source': str(self.source) if self.source else None,
            'destination': str(self.destination) if self.destination else None,
            'reason': self.reason,
            'duplicated': self.duplicated
        }


class MigrationStats:
    """Класс для хранения статистики миграции."""

    def __init__(self):
        self.total_sessions = 0
        self.processed_sessions = 0
        self.skipped_sessions = 0
        self.moved_files = 0
        self.planned_files = 0
        self.skipped_files = 0
        self.failed_files = 0
        self.start_time = None
        self.end_time = None
        self.outcomes: List[MigrationOutcome] = []

    def add_outcome(self, outcome: MigrationOutcome) -> None:
        """Добавляет результат элемента и обновляет счетчики."""
        self.outcomes.append(outcome)
        if outcome.action == Action.MOVED:
            self.moved_files += 1
        elif outcome.action == Action.PLANNED:
            self.planned_files += 1
        elif outcome.action == Action.SKIPPED:
            self.skipped_files += 1
        else:
            self.failed_files += 1

    @property
    def processed_files(self) -> int:
        return len(self.outcomes)

    @property
    def errors(self) -> List[MigrationOutcome]:
        return [o for o in self.outcomes if o.action == Action.FAILED]

    def get_duration(self) -> Optional[float]:
        """Возвращает продолжительность миграции в секундах."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def get_success_rate(self) -> float:
        """Возвращает процент успешных переносов среди попыток переноса."""
        attempted = self.moved_files + self.failed_files
        if attempted == 0:
            return 0.0
        return (self.moved_files / attempted) * 100

    def to_dict(self) -> Dict:
        """Преобразует статистику в словарь."""
        return {
            'total_sessions': self.total_sessions,
            'processed_sessions': self.processed_sessions,
            'skipped_sessions': self.skipped_sessions,
            'processed_files': self.processed_files,
            'moved_files': self.moved_files,
            'planned_files': self.planned_files,
            'skipped_files': self.skipped_files,
            'failed_files': self.failed_files,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_seconds': self.get_duration(),
            'success_rate': self.get_success_rate(),
            'error_count': len(self.errors)
        }


class Migrator:
    """Основной класс для миграции материалов записи."""

    def __init__(self, config: Config, logger: CaptureMigrateLogger,
                 relocator: Optional[Relocator] = None):
        """
        Инициализация мигратора.

        Args:
            config: Конфигурация приложения
            logger: Логгер для записи событий
            relocator: Объект переноса (по умолчанию создается из настроек)
        """
        self.config = config
        self.logger = logger
        self.source_root = Path(config.paths.source_root)
        self.destination_root = Path(config.paths.destination_root)
        self.relocator = relocator or create_relocator(config.migrator, logger)
        self.resolver = DestinationResolver(self.destination_root, config.labels)
        self.stats = MigrationStats()

    def list_sessions(self) -> List[str]:
        """
        Возвращает имена сессий (подкаталогов) исходного каталога.

        Элементы верхнего уровня, не являющиеся каталогами, пропускаются
        с предупреждением.

        Raises:
            MigrationError: Если исходный каталог не читается или в нем нет сессий
        """
        try:
            names = sorted(os.listdir(self.source_root))
        except OSError as e:
            raise MigrationError(f"Не удалось прочитать исходный каталог {self.source_root}: {e}") from e

        if not names:
            raise MigrationError(f"Нет каталогов для миграции в {self.source_root}")

        sessions = []
        for name in names:
            path = self.source_root / name
            if path.is_dir() and not path.is_symlink():
                sessions.append(name)
            else:
                self._record(MigrationOutcome(
                    session=name,
                    name=name,
                    action=Action.SKIPPED,
                    source=path,
                    reason=REASON_SYMLINK if path.is_symlink() else REASON_NOT_A_DIRECTORY
                ))

        if not sessions:
            raise MigrationError(f"Нет каталогов для миграции в {self.source_root}")

        return sessions

    def migrate(self, dry_run: bool = False) -> MigrationStats:
        """
        Выполняет миграцию всех сессий.

        Args:
            dry_run: Только вычислить пути назначения, ничего не перемещая

        Returns:
            MigrationStats: Статистика миграции

        Raises:
            MigrationError: При фатальной ошибке перечисления сессий
        """
        self.stats = MigrationStats()
        self.stats.start_time = datetime.now()

        try:
            sessions = self.list_sessions()
        except MigrationError as e:
            self.stats.end_time = datetime.now()
            self.logger.log_critical_error("Ошибка миграции", e)
            raise

        self.stats.total_sessions = len(sessions)
        self.logger.log_migration_start(self.source_root, self.destination_root, len(sessions))

        if dry_run:
            self.logger.log_system_info("Пробный запуск: файлы не перемещаются")
        else:
            try:
                self.relocator.ensure_directory(self.destination_root)
            except FileOperationError as e:
                self.stats.end_time = datetime.now()
                self.logger.log_critical_error("Ошибка миграции", e)
                raise MigrationError(f"Не удалось создать целевой каталог: {e}") from e

        for session_name in sessions:
            self.migrate_session(session_name, dry_run=dry_run)

        self.stats.end_time = datetime.now()

        self.logger.log_migration_end(
            moved=self.stats.planned_files if dry_run else self.stats.moved_files,
            skipped=self.stats.skipped_files,
            failed=self.stats.failed_files,
            duration=self.stats.get_duration()
        )

        return self.stats

    def plan(self) -> MigrationStats:
        """Пробный запуск: возвращает запланированные переносы."""
        return self.migrate(dry_run=True)

    def migrate_session(self, session_name: str, dry_run: bool = False) -> List[MigrationOutcome]:
        """
        Обрабатывает все элементы одной сессии.

        Args:
            session_name: Имя сессии
            dry_run: Пробный запуск

        Returns:
            List[MigrationOutcome]: Результаты по элементам сессии
        """
        session_dir = self.source_root / session_name

        try:
            entries = sorted(os.listdir(session_dir))
        except OSError as e:
            self.stats.skipped_sessions += 1
            outcome = MigrationOutcome(
                session=session_name,
                name=session_name,
                action=Action.FAILED,
                source=session_dir,
                reason=f"Не удалось прочитать каталог сессии: {e}"
            )
            self._record(outcome)
            return [outcome]

        if not entries:
            self.stats.skipped_sessions += 1
            self.logger.log_session_skipped(session_name, "каталог пуст")
            return []

        self.stats.processed_sessions += 1
        self.logger.log_session_start(session_name, len(entries))

        outcomes = []
        for entry_name in entries:
            outcome = self.process_entry(session_name, entry_name, dry_run=dry_run)
            self._record(outcome)
            outcomes.append(outcome)

        return outcomes

    def process_entry(self, session_name: str, entry_name: str, dry_run: bool = False) -> MigrationOutcome:
        """
        Классифицирует и переносит один элемент сессии.

        Любая ошибка превращается в результат FAILED для этого элемента.

        Args:
            session_name: Имя сессии
            entry_name: Имя элемента внутри сессии
            dry_run: Пробный запуск

        Returns:
            MigrationOutcome: Результат обработки
        """
        source = self.source_root / session_name / entry_name
        outcome = MigrationOutcome(session=session_name, name=entry_name,
                                   action=Action.FAILED, source=source)

        try:
            mode = source.lstat().st_mode
            if stat.S_ISLNK(mode):
                outcome.action = Action.SKIPPED
                outcome.reason = REASON_SYMLINK
                return outcome

            is_directory = stat.S_ISDIR(mode)
            outcome.category = classify(entry_name, is_directory, self.config.labels)

            if outcome.category == Category.UNCLASSIFIED:
                outcome.action = Action.SKIPPED
                outcome.reason = REASON_UNCLASSIFIED
                return outcome

            date_bucket = None
            if outcome.category == Category.FOOTAGE:
                date_bucket = extract_date_bucket(entry_name)
                if date_bucket is None:
                    outcome.action = Action.SKIPPED
                    outcome.reason = REASON_NO_DATE
                    return outcome

            destination = self.resolver.resolve(session_name, entry_name, outcome.category, date_bucket)
            outcome.destination = destination.target

            if dry_run:
                outcome.action = Action.PLANNED
                return outcome

            self.relocator.ensure_directory(destination.directory)
            self._relocate(outcome.category, source, destination.target)
            outcome.action = Action.MOVED
            return outcome

        except SourceCleanupError as e:
            outcome.reason = str(e)
            outcome.duplicated = True
            return outcome
        except Exception as e:
            outcome.reason = str(e)
            return outcome

    def _relocate(self, category: Category, source: Path, target: Path) -> None:
        """Переносит элемент с повтором при временных ошибках копирования."""
        max_retries = self.config.migrator.max_retries

        for attempt in range(max_retries + 1):
            try:
                if category == Category.PROJECT:
                    self.relocator.move_tree(source, target)
                else:
                    self.relocator.move_file(source, target)
                return
            except NON_RETRYABLE_ERRORS:
                raise
            except FileOperationError as e:
                if attempt >= max_retries or isinstance(e.__cause__, NON_RETRYABLE_ERRORS):
                    raise
                self.logger.log_retry(source.name, attempt + 1, max_retries, e)
                if self.config.migrator.retry_delay > 0:
                    time.sleep(self.config.migrator.retry_delay)

    def _record(self, outcome: MigrationOutcome) -> None:
        self.stats.add_outcome(outcome)
        self.logger.log_outcome(outcome)


def create_migrator(config: Config, logger: CaptureMigrateLogger) -> Migrator:
    """
    Удобная функция для создания объекта мигратора.

    Args:
        config: Конфигурация приложения
        logger: Логгер

    Returns:
        Migrator: Объект мигратора
    """
    return Migrator(config, logger)

"""
Модуль для операций с файловой системой.

Обеспечивает перенос файлов и каталогов с поддержкой разных томов:
данные всегда копируются потоком, а источник удаляется только после того,
как запись в место назначения полностью завершена.
"""

import hashlib
import os
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

try:
    from .config_loader import VERIFY_MODES
    from .logger import CaptureMigrateLogger
except ImportError:
    from config_loader import VERIFY_MODES
    from logger import CaptureMigrateLogger


PathLike = Union[str, Path]

POLICY_SKIP = 'skip'
POLICY_FAIL = 'fail'


class FileOperationError(Exception):
    """Исключение для ошибок операций с файлами."""
    pass


class DestinationExistsError(FileOperationError):
    """Файл назначения уже существует, перезапись запрещена."""
    pass


class TreeCopyError(FileOperationError):
    """Копирование каталога прервано на первой ошибке, источник не тронут."""
    pass


class VerificationError(FileOperationError):
    """Копия не совпала с источником, источник не удален."""
    pass


class SourceCleanupError(FileOperationError):
    """Копия записана, но удалить источник не удалось: данные продублированы."""

    def __init__(self, message: str, source: Path, destination: Path):
        super().__init__(message)
        self.source = source
        self.destination = destination


@dataclass
class TreeCopyResult:
    """Статистика копирования каталога."""
    files_copied: int = 0
    files_skipped: int = 0
    links_copied: int = 0
    directories: int = 0
    bytes_copied: int = 0


class Relocator:
    """Класс для переноса файлов и каталогов."""

    def __init__(self, logger: CaptureMigrateLogger, concurrency_limit: int = 16,
                 chunk_size: int = 1024 * 1024, collision_policy: str = POLICY_SKIP,
                 verify: str = 'none'):
        """
        Инициализация операций переноса.

        Args:
            logger: Логгер для записи операций
            concurrency_limit: Максимум одновременных копирований внутри каталога
            chunk_size: Размер блока потокового копирования в байтах
            collision_policy: Поведение при существующем файле в каталоге назначения
                (skip - оставить существующий, fail - прервать копирование)
            verify: Проверка копии перед удалением источника (none, size, hash)
        """
        if concurrency_limit < 1:
            raise ValueError("Лимит параллельных операций должен быть больше 0")
        if collision_policy not in (POLICY_SKIP, POLICY_FAIL):
            raise ValueError(f"Некорректная политика коллизий: {collision_policy}")
        if verify not in VERIFY_MODES:
            raise ValueError(f"Некорректный режим проверки: {verify}")

        self.logger = logger
        self.concurrency_limit = concurrency_limit
        self.chunk_size = chunk_size
        self.collision_policy = collision_policy
        self.verify = verify

    def ensure_directory(self, path: PathLike) -> Path:
        """
        Создает каталог со всеми родителями, если его нет.

        Args:
            path: Путь к каталогу

        Returns:
            Path: Путь к каталогу

        Raises:
            FileOperationError: Если каталог не удалось создать
        """
        directory = Path(path)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.log_file_operation("mkdir", directory, False)
            raise FileOperationError(f"Ошибка создания каталога {directory}: {e}") from e
        return directory

    def move_file(self, source: PathLike, destination: PathLike) -> Path:
        """
        Переносит файл потоковым копированием с последующим удалением источника.

        Файл назначения создается эксклюзивно и никогда не перезаписывается.
        Источник удаляется только после закрытия файла назначения.

        Args:
            source: Исходный файл
            destination: Путь назначения

        Returns:
            Path: Путь к перенесенному файлу

        Raises:
            DestinationExistsError: Если файл назначения уже существует
            VerificationError: Если копия не совпала с источником
            SourceCleanupError: Если копия записана, но источник не удален
            FileOperationError: Если произошла ошибка при копировании
        """
        source_path = Path(source)
        destination_path = Path(destination)

        try:
            self._stream_copy(source_path, destination_path)
        except DestinationExistsError:
            self.logger.log_file_operation("copy", destination_path, False)
            raise
        except OSError as e:
            self.logger.log_file_operation("copy", destination_path, False)
            raise FileOperationError(f"Ошибка копирования {source_path} → {destination_path}: {e}") from e

        try:
            self.verify_copy(source_path, destination_path)
        except VerificationError:
            self._discard_partial(destination_path)
            raise

        self._remove_source(source_path, destination_path, is_directory=False)
        self.logger.log_file_operation("move", destination_path, True)
        return destination_path

    def move_tree(self, source_dir: PathLike, destination_dir: PathLike,
                  collision_policy: Optional[str] = None) -> TreeCopyResult:
        """
        Переносит каталог: рекурсивное копирование, затем удаление источника.

        Копирование останавливается на первой ошибке. В этом случае источник
        остается нетронутым, а ошибка передается вызывающему коду.

        Args:
            source_dir: Исходный каталог
            destination_dir: Каталог назначения
            collision_policy: Политика коллизий (по умолчанию из настроек)

        Returns:
            TreeCopyResult: Статистика копирования
        """
        source_path = Path(source_dir)
        destination_path = Path(destination_dir)

        result = self.copy_tree(source_path, destination_path, collision_policy)
        self.verify_tree(source_path, destination_path)
        self._remove_source(source_path, destination_path, is_directory=True)

        self.logger.log_file_operation("move", destination_path, True)
        return result

    def copy_tree(self, source_dir: PathLike, destination_dir: PathLike,
                  collision_policy: Optional[str] = None) -> TreeCopyResult:
        """
        Рекурсивно копирует содержимое каталога с ограниченным параллелизмом.

        Обход каталогов последовательный, копирование файлов выполняется пулом
        потоков, одновременно выполняется не более concurrency_limit задач.
        После первой ошибки новые задачи не запускаются, а созданные этим
        вызовом файлы и каталоги удаляются: место назначения возвращается
        к состоянию до копирования.

        Raises:
            TreeCopyError: При первой ошибке копирования
        """
        source_path = Path(source_dir)
        destination_path = Path(destination_dir)
        policy = collision_policy or self.collision_policy

        result = TreeCopyResult()
        lock = threading.Lock()
        stop = threading.Event()
        slots = threading.BoundedSemaphore(self.concurrency_limit)
        failures: List[BaseException] = []
        created_files: List[Path] = []
        created_dirs: List[Path] = []

        def fail(error: BaseException) -> None:
            with lock:
                failures.append(error)
            stop.set()

        def on_done(future) -> None:
            slots.release()
            error = future.exception()
            if error is not None:
                fail(error)

        def raise_walk_error(error: OSError) -> None:
            raise error

        if not source_path.is_dir():
            raise TreeCopyError(f"Исходный каталог не найден: {source_path}")

        try:
            with ThreadPoolExecutor(max_workers=self.concurrency_limit,
                                    thread_name_prefix='copy-tree') as executor:
                for current_dir, dir_names, file_names in os.walk(source_path, onerror=raise_walk_error):
                    if stop.is_set():
                        break

                    current_path = Path(current_dir)
                    target_dir = destination_path / current_path.relative_to(source_path)
                    if not target_dir.is_dir():
                        target_dir.mkdir(parents=True, exist_ok=True)
                        created_dirs.append(target_dir)
                    result.directories += 1

                    # Ссылки на каталоги копируются как ссылки, без обхода
                    links = [name for name in dir_names if (current_path / name).is_symlink()]
                    dir_names[:] = sorted(name for name in dir_names if name not in links)

                    for name in sorted(file_names + links):
                        slots.acquire()
                        if stop.is_set():
                            slots.release()
                            break
                        future = executor.submit(
                            self._copy_tree_entry,
                            current_path / name, target_dir / name, policy, result, lock, stop,
                            created_files
                        )
                        future.add_done_callback(on_done)
        except OSError as e:
            fail(e)

        if failures:
            error = failures[0]
            self.logger.log_file_operation("copy", destination_path, False)
            self._rollback_tree(created_files, created_dirs)
            raise TreeCopyError(
                f"Копирование {source_path} → {destination_path} прервано: {error}"
            ) from error

        return result

    def _copy_tree_entry(self, source: Path, destination: Path, policy: str,
                         result: TreeCopyResult, lock: threading.Lock,
                         stop: threading.Event, created: List[Path]) -> None:
        """Копирует один файл или ссылку внутри каталога."""
        if stop.is_set():
            return

        if source.is_symlink():
            if os.path.lexists(destination):
                self._on_collision(destination, policy, result, lock)
                return
            os.symlink(os.readlink(source), destination)
            with lock:
                created.append(destination)
                result.links_copied += 1
            return

        try:
            size = self._stream_copy(source, destination)
        except DestinationExistsError:
            self._on_collision(destination, policy, result, lock)
            return

        with lock:
            created.append(destination)
        shutil.copymode(source, destination)
        with lock:
            result.files_copied += 1
            result.bytes_copied += size

    @staticmethod
    def _on_collision(destination: Path, policy: str, result: TreeCopyResult,
                      lock: threading.Lock) -> None:
        if policy == POLICY_FAIL:
            raise DestinationExistsError(f"Файл назначения уже существует: {destination}")
        with lock:
            result.files_skipped += 1

    def _stream_copy(self, source: Path, destination: Path) -> int:
        """
        Копирует файл потоком в эксклюзивно созданный файл назначения.

        При ошибке частично записанный файл назначения удаляется: он
        гарантированно создан этим вызовом.

        Returns:
            int: Количество скопированных байт
        """
        with open(source, 'rb') as source_stream:
            try:
                destination_stream = open(destination, 'xb')
            except FileExistsError:
                raise DestinationExistsError(f"Файл назначения уже существует: {destination}")

            try:
                with destination_stream:
                    shutil.copyfileobj(source_stream, destination_stream, self.chunk_size)
                    destination_stream.flush()
                    os.fsync(destination_stream.fileno())
                    return destination_stream.tell()
            except Exception:
                self._discard_partial(destination)
                raise

    def _discard_partial(self, destination: Path) -> None:
        try:
            destination.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.log_warning(f"Не удалось удалить неполную копию {destination}: {e}")

    def _rollback_tree(self, created_files: List[Path], created_dirs: List[Path]) -> None:
        """Удаляет то, что создало прерванное копирование каталога."""
        for path in created_files:
            self._discard_partial(path)
        for directory in reversed(created_dirs):
            try:
                directory.rmdir()
            except FileNotFoundError:
                pass
            except OSError as e:
                self.logger.log_warning(f"Не удалось удалить каталог {directory}: {e}")

    def _remove_source(self, source: Path, destination: Path, is_directory: bool) -> None:
        """Удаляет источник после успешной записи копии."""
        try:
            if is_directory:
                shutil.rmtree(source)
            else:
                source.unlink()
        except OSError as e:
            self.logger.log_file_operation("delete", source, False)
            raise SourceCleanupError(
                f"Копия записана в {destination}, но источник {source} не удален: {e}",
                source=source,
                destination=destination
            ) from e
        self.logger.log_file_operation("delete", source, True)

    def verify_copy(self, source: Path, destination: Path) -> None:
        """
        Сравнивает копию файла с источником согласно режиму проверки.

        Raises:
            VerificationError: Если размер или хеш не совпали
        """
        if self.verify == 'none':
            return

        if self.verify == 'size':
            matches = source.stat().st_size == destination.stat().st_size
        else:
            matches = self.file_digest(source) == self.file_digest(destination)

        if not matches:
            raise VerificationError(
                f"Копия {destination} не совпадает с источником {source} (проверка: {self.verify})"
            )

    def verify_tree(self, source_dir: Path, destination_dir: Path) -> None:
        """Проверяет каждый обычный файл каталога-источника в копии."""
        if self.verify == 'none':
            return

        for current_dir, _, file_names in os.walk(source_dir):
            current_path = Path(current_dir)
            for name in file_names:
                source = current_path / name
                if source.is_symlink():
                    continue
                destination = destination_dir / source.relative_to(source_dir)
                if not destination.is_file():
                    raise VerificationError(f"Файл отсутствует в копии: {destination}")
                self.verify_copy(source, destination)

    def file_digest(self, path: PathLike, algorithm: str = 'md5') -> str:
        """
        Вычисляет хеш файла для проверки целостности.

        Args:
            path: Путь к файлу
            algorithm: Алгоритм хеширования (md5, sha1, sha256)

        Returns:
            str: Хеш файла
        """
        if algorithm not in ('md5', 'sha1', 'sha256'):
            raise ValueError(f"Неподдерживаемый алгоритм: {algorithm}")

        hasher = hashlib.new(algorithm)
        with open(path, 'rb') as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b""):
                hasher.update(chunk)
        return hasher.hexdigest()


def create_relocator(migrator_config, logger: CaptureMigrateLogger) -> Relocator:
    """
    Удобная функция для создания объекта переноса из настроек мигратора.

    Args:
        migrator_config: MigratorConfig
        logger: Логгер

    Returns:
        Relocator: Объект переноса
    """
    return Relocator(
        logger,
        concurrency_limit=migrator_config.concurrency_limit,
        chunk_size=migrator_config.chunk_size,
        collision_policy=migrator_config.collision_policy,
        verify=migrator_config.verify
    )

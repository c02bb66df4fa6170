"""
Вычисление путей назначения.

Чистая арифметика путей без обращения к файловой системе:
<Destination>/<Session>/[<Projects>|<Screenshots>|<Footages>/<YYYY.MM.DD>|<YYYY.MM.DD>]/<name>
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

try:
    from .classifier import Category
    from .config_loader import LabelsConfig
except ImportError:
    from classifier import Category
    from config_loader import LabelsConfig


class ResolveError(ValueError):
    """Исключение для элементов, которым нельзя вычислить путь назначения."""
    pass


@dataclass(frozen=True)
class Destination:
    """Путь назначения элемента.

    directory должен существовать до записи в target; создавать его нужно
    рекурсивно и без ошибки, если он уже есть.
    """
    directory: Path
    target: Path


class DestinationResolver:
    """Вычисляет каталог и путь назначения для элементов сессии."""

    def __init__(self, destination_root: Path, labels: LabelsConfig):
        self.destination_root = Path(destination_root)
        self.labels = labels

    def category_directory(self, session_name: str, category: Category,
                           date_bucket: Optional[str] = None) -> Path:
        """
        Возвращает каталог категории внутри сессии.

        Raises:
            ResolveError: Для неклассифицированных элементов, видео без
                метки даты и категорий с отключенной меткой
        """
        session_dir = self.destination_root / session_name

        if category == Category.PROJECT:
            return session_dir / self._required_label(self.labels.projects, category)

        if category == Category.SCREENSHOT:
            return session_dir / self._required_label(self.labels.screenshots, category)

        if category == Category.FOOTAGE:
            if not date_bucket:
                raise ResolveError("Для видео требуется метка даты")
            if LabelsConfig.enabled(self.labels.footages):
                return session_dir / self.labels.footages / date_bucket
            return session_dir / date_bucket

        raise ResolveError(f"Категория {category.value} не переносится")

    def resolve(self, session_name: str, entry_name: str, category: Category,
                date_bucket: Optional[str] = None) -> Destination:
        """
        Вычисляет путь назначения элемента.

        Args:
            session_name: Имя сессии (каталога программы/игры)
            entry_name: Имя элемента
            category: Категория элемента
            date_bucket: Метка даты для видео

        Returns:
            Destination: Каталог и полный путь назначения
        """
        directory = self.category_directory(session_name, category, date_bucket)
        return Destination(directory=directory, target=directory / entry_name)

    @staticmethod
    def _required_label(label: str, category: Category) -> str:
        if not LabelsConfig.enabled(label):
            raise ResolveError(f"Не задан подкаталог для категории {category.value}")
        return label

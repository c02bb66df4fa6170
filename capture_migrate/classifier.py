"""
Классификация элементов сессии записи.

Определяет категорию элемента (проект, скриншот, видео) по имени и типу,
а также извлекает из имени видеофайла метку даты вида YYYY.MM.DD.
"""

import re
from enum import Enum
from typing import Optional

try:
    from .config_loader import LabelsConfig
except ImportError:
    from config_loader import LabelsConfig


SCREENSHOT_SUFFIXES = ('.png', '.jpeg', '.jpg')
FOOTAGE_SUFFIX = '.mp4'

# Valorant 2024.01.05 - 21.11.01.02.mp4  ----->  2024.01.05
DATE_BUCKET_PATTERN = re.compile(r'\d{4}\.\d{2}\.\d{2}', re.ASCII)


class Category(Enum):
    """Категория элемента сессии."""
    PROJECT = 'project'
    SCREENSHOT = 'screenshot'
    FOOTAGE = 'footage'
    UNCLASSIFIED = 'unclassified'


def classify(name: str, is_directory: bool, labels: LabelsConfig) -> Category:
    """
    Определяет категорию элемента.

    Каталог считается проектом только при заданной метке projects, иначе он
    не классифицируется: каталог никогда не принимается за видео или скриншот.
    Файлы проверяются по расширению с учетом регистра, сначала скриншоты,
    затем видео.

    Args:
        name: Имя элемента
        is_directory: Признак каталога
        labels: Названия подкаталогов категорий

    Returns:
        Category: Категория элемента
    """
    if is_directory:
        if LabelsConfig.enabled(labels.projects):
            return Category.PROJECT
        return Category.UNCLASSIFIED

    if LabelsConfig.enabled(labels.screenshots) and name.endswith(SCREENSHOT_SUFFIXES):
        return Category.SCREENSHOT

    if name.endswith(FOOTAGE_SUFFIX):
        return Category.FOOTAGE

    return Category.UNCLASSIFIED


def extract_date_bucket(filename: str) -> Optional[str]:
    """
    Извлекает первую метку даты YYYY.MM.DD из имени файла.

    Дата не проверяется на корректность (месяц 13 допустим): метка служит
    только названием группы.

    Args:
        filename: Имя файла

    Returns:
        str или None: Метка даты или None, если ее нет
    """
    match = DATE_BUCKET_PATTERN.search(filename)
    if match is None:
        return None
    return match.group(0)

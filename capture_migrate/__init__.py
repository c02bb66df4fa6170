"""
Capture Migrate

Утилита для переноса материалов программ записи экрана (видео, скриншоты,
проекты) из плоского каталога в упорядоченную структуру по сессиям и датам.
"""

__version__ = "1.0.0"
__author__ = "Capture Migrate Team"
__description__ = "Utility for sorting capture-software output into session and date folders"

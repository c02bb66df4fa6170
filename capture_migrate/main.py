"""
Главный модуль CLI интерфейса утилиты переноса материалов записи.

Предоставляет командный интерфейс для миграции, пробного запуска
и проверки классификации имен.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

try:
    from .classifier import Category, classify, extract_date_bucket
    from .config_loader import load_config, validate_paths
    from .logger import CaptureMigrateLogger
    from .migrator import Action, MigrationError, create_migrator
except ImportError:
    from classifier import Category, classify, extract_date_bucket
    from config_loader import load_config, validate_paths
    from logger import CaptureMigrateLogger
    from migrator import Action, MigrationError, create_migrator


MAX_ERRORS_SHOWN = 10


class CaptureMigrateCLI:
    """Класс для обработки команд CLI."""

    def __init__(self):
        self.config = None
        self.logger = None
        self.migrator = None

    def setup(self, config_path: str = "config/settings.ini",
              source: Optional[str] = None, destination: Optional[str] = None) -> bool:
        """
        Инициализирует CLI с конфигурацией.

        Args:
            config_path: Путь к файлу конфигурации
            source: Исходный каталог вместо указанного в конфигурации
            destination: Целевой каталог вместо указанного в конфигурации

        Returns:
            bool: True если инициализация успешна
        """
        try:
            config = load_config(config_path)

            if source is not None:
                if not source.strip():
                    raise ValueError("Исходный каталог (source_root) обязателен")
                config.paths.source_root = Path(source)
            if destination is not None:
                if not destination.strip():
                    raise ValueError("Целевой каталог (destination_root) обязателен")
                config.paths.destination_root = Path(destination)
            validate_paths(config.paths)

            self.config = config
            self.logger = CaptureMigrateLogger(self.config.logging)
            self.migrator = create_migrator(self.config, self.logger)

            self.logger.log_system_info(f"Конфигурация загружена из: {config_path}")
            return True

        except Exception as e:
            print(f"❌ Ошибка инициализации: {e}")
            return False

    def cmd_migrate(self, args) -> int:
        """
        Команда миграции.

        Args:
            args: Аргументы командной строки

        Returns:
            int: Код возврата (0 - успех, 1 - ошибка)
        """
        try:
            stats = self.migrator.migrate()
        except MigrationError as e:
            print(f"❌ Ошибка миграции: {e}")
            return 1

        print(f"\n✅ Миграция завершена!")
        print(f"📊 Статистика:")
        print(f"   • Перенесено: {stats.moved_files}")
        print(f"   • Пропущено: {stats.skipped_files}")
        print(f"   • Ошибок: {stats.failed_files}")
        print(f"   • Продолжительность: {stats.get_duration():.2f} сек")

        errors = stats.errors
        if errors:
            print(f"\n⚠️ Обнаружено {len(errors)} ошибок:")
            for outcome in errors[:MAX_ERRORS_SHOWN]:
                marker = " (данные продублированы!)" if outcome.duplicated else ""
                print(f"   • {outcome.session}/{outcome.name}: {outcome.reason}{marker}")
            if len(errors) > MAX_ERRORS_SHOWN:
                print(f"   ... и еще {len(errors) - MAX_ERRORS_SHOWN} ошибок")

        return 0 if stats.failed_files == 0 else 1

    def cmd_plan(self, args) -> int:
        """
        Команда пробного запуска: показывает, куда будет перенесен каждый элемент.

        Args:
            args: Аргументы командной строки

        Returns:
            int: Код возврата (0 - успех, 1 - ошибка)
        """
        try:
            stats = self.migrator.plan()
        except MigrationError as e:
            print(f"❌ Ошибка миграции: {e}")
            return 1

        print(f"\n📝 План миграции:")
        for outcome in stats.outcomes:
            if outcome.action == Action.PLANNED:
                print(f"   • {outcome.session}/{outcome.name} → {outcome.destination}")
            elif outcome.action == Action.SKIPPED:
                print(f"   • {outcome.session}/{outcome.name}: пропуск ({outcome.reason})")
            else:
                print(f"   • {outcome.session}/{outcome.name}: ошибка ({outcome.reason})")

        print(f"\n📊 Запланировано: {stats.planned_files}, пропущено: {stats.skipped_files}, "
              f"ошибок: {stats.failed_files}")

        return 0 if stats.failed_files == 0 else 1

    def cmd_classify(self, args) -> int:
        """
        Команда проверки классификации имен.

        Args:
            args: Аргументы командной строки

        Returns:
            int: Код возврата (0 - успех)
        """
        for name in args.names:
            category = classify(name, args.directory, self.config.labels)
            line = f"{name}: {category.value}"
            if category == Category.FOOTAGE:
                bucket = extract_date_bucket(name)
                line += f" [{bucket}]" if bucket else " [нет даты]"
            print(line)
        return 0


def create_parser() -> argparse.ArgumentParser:
    """
    Создает парсер аргументов командной строки.

    Returns:
        argparse.ArgumentParser: Настроенный парсер
    """
    parser = argparse.ArgumentParser(
        description="Утилита переноса видео, скриншотов и проектов программ записи",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры использования:

  # Перенос всех сессий
  capture-migrate migrate

  # Перенос с другими каталогами
  capture-migrate migrate --source D:/ShadowPlay --destination E:/Videos

  # Пробный запуск
  capture-migrate plan

  # Проверка классификации имени
  capture-migrate classify "Valorant 2024.01.05 - 21.11.01.02.mp4"
        """
    )

    parser.add_argument(
        '--config',
        default='config/settings.ini',
        help='Путь к файлу конфигурации (по умолчанию: config/settings.ini)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Подробный вывод'
    )

    subparsers = parser.add_subparsers(dest='command', help='Доступные команды')

    migrate_parser = subparsers.add_parser('migrate', help='Перенос всех сессий')
    plan_parser = subparsers.add_parser('plan', help='Пробный запуск без изменений на диске')

    for sub in (migrate_parser, plan_parser):
        sub.add_argument('--source', help='Исходный каталог (вместо указанного в конфигурации)')
        sub.add_argument('--destination', help='Целевой каталог (вместо указанного в конфигурации)')

    classify_parser = subparsers.add_parser('classify', help='Проверка классификации имен')
    classify_parser.add_argument('names', nargs='+', help='Имена файлов или каталогов')
    classify_parser.add_argument(
        '--directory',
        action='store_true',
        help='Считать имена каталогами'
    )

    return parser


def main(argv=None):
    """Главная функция CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = CaptureMigrateCLI()

    if not cli.setup(args.config,
                     source=getattr(args, 'source', None),
                     destination=getattr(args, 'destination', None)):
        return 1

    try:
        if args.command == 'migrate':
            return cli.cmd_migrate(args)
        elif args.command == 'plan':
            return cli.cmd_plan(args)
        elif args.command == 'classify':
            return cli.cmd_classify(args)
        else:
            print(f"❌ Неизвестная команда: {args.command}")
            return 1

    except KeyboardInterrupt:
        print("\n⚠️ Операция прервана пользователем")
        return 1
    except Exception as e:
        print(f"❌ Неожиданная ошибка: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Тесты для модуля main.py
"""

import pytest
import argparse
import logging
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock, patch

from capture_migrate.config_loader import Config, LabelsConfig, LoggingConfig, MigratorConfig, PathsConfig
from capture_migrate.main import CaptureMigrateCLI, create_parser, main
from capture_migrate.migrator import Action, MigrationError, MigrationOutcome, MigrationStats


def make_stats(*outcomes):
    stats = MigrationStats()
    stats.start_time = datetime(2024, 1, 1, 10, 0, 0)
    stats.end_time = datetime(2024, 1, 1, 10, 0, 1)
    for outcome in outcomes:
        stats.add_outcome(outcome)
    return stats


class TestCaptureMigrateCLI:
    """Тесты для класса CaptureMigrateCLI."""

    @pytest.fixture
    def mock_config(self, tmp_path):
        """Создает конфигурацию с временными каталогами."""
        source = tmp_path / "ShadowPlay"
        source.mkdir()
        return Config(
            paths=PathsConfig(source_root=source, destination_root=tmp_path / "Souvenir"),
            labels=LabelsConfig(projects="Projects", screenshots="Screenshots", footages="Footages"),
            migrator=MigratorConfig(),
            logging=LoggingConfig(level='INFO', log_file=tmp_path / 'test.log',
                                  max_log_size=1, backup_count=1)
        )

    @pytest.fixture
    def mock_migrator(self):
        """Создает мок мигратора."""
        return Mock()

    @patch('capture_migrate.main.load_config')
    @patch('capture_migrate.main.CaptureMigrateLogger')
    @patch('capture_migrate.main.create_migrator')
    def test_setup_success(self, mock_create_migrator, mock_logger_class, mock_load_config, mock_config):
        """Тест успешной инициализации CLI."""
        mock_load_config.return_value = mock_config
        mock_logger_instance = Mock()
        mock_logger_class.return_value = mock_logger_instance
        mock_migrator_instance = Mock()
        mock_create_migrator.return_value = mock_migrator_instance

        cli = CaptureMigrateCLI()
        result = cli.setup("test_config.ini")

        assert result is True
        assert cli.config == mock_config
        assert cli.logger == mock_logger_instance
        assert cli.migrator == mock_migrator_instance

        mock_load_config.assert_called_once_with("test_config.ini")
        mock_logger_class.assert_called_once_with(mock_config.logging)
        mock_create_migrator.assert_called_once_with(mock_config, mock_logger_instance)

    @patch('capture_migrate.main.load_config')
    @patch('capture_migrate.main.CaptureMigrateLogger')
    @patch('capture_migrate.main.create_migrator')
    def test_setup_path_overrides(self, mock_create_migrator, mock_logger_class, mock_load_config,
                                  mock_config, tmp_path):
        """Тест переопределения путей из командной строки."""
        mock_load_config.return_value = mock_config
        other_source = tmp_path / "Other"
        other_source.mkdir()

        cli = CaptureMigrateCLI()
        result = cli.setup("test_config.ini", source=str(other_source), destination=str(tmp_path / "Out"))

        assert result is True
        assert cli.config.paths.source_root == other_source
        assert cli.config.paths.destination_root == tmp_path / "Out"

    @patch('capture_migrate.main.load_config')
    def test_setup_missing_source_override(self, mock_load_config, mock_config, tmp_path):
        mock_load_config.return_value = mock_config

        cli = CaptureMigrateCLI()

        assert cli.setup("test_config.ini", source=str(tmp_path / "missing")) is False
        assert cli.migrator is None

    @patch('capture_migrate.main.load_config')
    def test_setup_empty_destination_override(self, mock_load_config, mock_config):
        mock_load_config.return_value = mock_config

        cli = CaptureMigrateCLI()

        assert cli.setup("test_config.ini", destination="") is False

    @patch('capture_migrate.main.load_config')
    def test_setup_failure(self, mock_load_config):
        """Тест неудачной инициализации CLI."""
        mock_load_config.side_effect = Exception("Config error")

        cli = CaptureMigrateCLI()
        result = cli.setup("test_config.ini")

        assert result is False
        assert cli.config is None
        assert cli.logger is None
        assert cli.migrator is None

    def test_cmd_migrate_success(self, mock_migrator, capsys):
        """Тест успешной миграции."""
        mock_migrator.migrate.return_value = make_stats(
            MigrationOutcome("Valorant", "shot1.png", Action.MOVED),
            MigrationOutcome("Valorant", "random.txt", Action.SKIPPED, reason="unclassified")
        )

        cli = CaptureMigrateCLI()
        cli.migrator = mock_migrator

        assert cli.cmd_migrate(Mock()) == 0
        output = capsys.readouterr().out
        assert "Перенесено: 1" in output
        assert "Пропущено: 1" in output

    def test_cmd_migrate_with_failures(self, mock_migrator, capsys):
        """Тест миграции с ошибками."""
        mock_migrator.migrate.return_value = make_stats(
            MigrationOutcome("Valorant", "clip.mp4", Action.FAILED, reason="disk full"),
            MigrationOutcome("Valorant", "shot.png", Action.FAILED, reason="busy", duplicated=True)
        )

        cli = CaptureMigrateCLI()
        cli.migrator = mock_migrator

        assert cli.cmd_migrate(Mock()) == 1
        output = capsys.readouterr().out
        assert "Valorant/clip.mp4: disk full" in output
        assert "данные продублированы" in output

    def test_cmd_migrate_fatal_error(self, mock_migrator, capsys):
        mock_migrator.migrate.side_effect = MigrationError("Нет каталогов для миграции")

        cli = CaptureMigrateCLI()
        cli.migrator = mock_migrator

        assert cli.cmd_migrate(Mock()) == 1
        assert "Нет каталогов для миграции" in capsys.readouterr().out

    def test_cmd_plan(self, mock_migrator, capsys):
        mock_migrator.plan.return_value = make_stats(
            MigrationOutcome("Valorant", "shot1.png", Action.PLANNED,
                             destination=Path("Souvenir/Valorant/Screenshots/shot1.png")),
            MigrationOutcome("Valorant", "clip.mp4", Action.SKIPPED, reason="no date")
        )

        cli = CaptureMigrateCLI()
        cli.migrator = mock_migrator

        assert cli.cmd_plan(Mock()) == 0
        output = capsys.readouterr().out
        assert "Valorant/shot1.png →" in output
        assert "пропуск (no date)" in output
        mock_migrator.migrate.assert_not_called()

    def test_cmd_classify(self, mock_config, capsys):
        cli = CaptureMigrateCLI()
        cli.config = mock_config
        args = argparse.Namespace(
            names=["Valorant 2024.01.05 - 21.11.01.02.mp4", "shot.png", "clip.mp4"],
            directory=False
        )

        assert cli.cmd_classify(args) == 0
        output = capsys.readouterr().out
        assert "Valorant 2024.01.05 - 21.11.01.02.mp4: footage [2024.01.05]" in output
        assert "shot.png: screenshot" in output
        assert "clip.mp4: footage [нет даты]" in output


class TestMain:
    """Тесты для функции main."""

    def test_main_without_command(self):
        assert main([]) == 1

    def test_main_bad_config(self, capsys):
        assert main(['--config', 'nonexistent.ini', 'migrate']) == 1
        assert "Ошибка инициализации" in capsys.readouterr().out

    def test_main_end_to_end(self, tmp_path):
        """Полный запуск из командной строки на временных каталогах."""
        source = tmp_path / "ShadowPlay"
        (source / "Valorant").mkdir(parents=True)
        (source / "Valorant" / "shot1.png").write_bytes(b"png")
        config_file = tmp_path / "settings.ini"
        config_file.write_text(
            f"[paths]\nsource_root = {source}\ndestination_root = {tmp_path / 'Souvenir'}\n\n"
            f"[labels]\nscreenshots = Screenshots\n\n"
            f"[logging]\nlevel = INFO\nlog_file = {tmp_path / 'logs' / 'run.log'}\n",
            encoding='utf-8'
        )

        try:
            assert main(['--config', str(config_file), 'migrate']) == 0
        finally:
            logger = logging.getLogger('capture_migrate')
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)

        assert (tmp_path / "Souvenir" / "Valorant" / "Screenshots" / "shot1.png").exists()
        assert not (source / "Valorant" / "shot1.png").exists()


class TestCreateParser:
    """Тесты для функции create_parser."""

    def test_create_parser(self):
        parser = create_parser()

        assert isinstance(parser, argparse.ArgumentParser)
        assert parser.description == "Утилита переноса видео, скриншотов и проектов программ записи"

    def test_parser_arguments(self):
        parser = create_parser()

        args = parser.parse_args(['--config', 'test.ini', '--verbose', 'plan'])
        assert args.config == 'test.ini'
        assert args.verbose is True
        assert args.command == 'plan'

        args = parser.parse_args(['migrate', '--source', 'D:/ShadowPlay', '--destination', 'E:/Out'])
        assert args.command == 'migrate'
        assert args.source == 'D:/ShadowPlay'
        assert args.destination == 'E:/Out'

        args = parser.parse_args(['classify', 'a.mp4', 'b.png', '--directory'])
        assert args.command == 'classify'
        assert args.names == ['a.mp4', 'b.png']
        assert args.directory is True

    def test_parser_defaults(self):
        args = create_parser().parse_args(['migrate'])

        assert args.config == 'config/settings.ini'
        assert args.source is None
        assert args.destination is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Тесты для модуля config_loader.py
"""

import pytest
import tempfile
import shutil
from pathlib import Path

from capture_migrate.config_loader import (
    ConfigLoader,
    LabelsConfig,
    MigratorConfig,
    PathsConfig,
    load_config,
    validate_paths,
)


SETTINGS_TEMPLATE = """[paths]
source_root = {source}
destination_root = {destination}

[labels]
projects = Projects
screenshots = Screenshots
footages = Footages

[migrator]
{migrator}

[logging]
level = {level}
log_file = logs/test.log
max_log_size = 10
backup_count = 5
"""


class TestConfigLoader:
    """Тесты для класса ConfigLoader."""

    @pytest.fixture
    def temp_dir(self):
        """Создает временную директорию для тестов."""
        temp_path = tempfile.mkdtemp()
        yield Path(temp_path)
        shutil.rmtree(temp_path, ignore_errors=True)

    @pytest.fixture
    def write_config(self, temp_dir):
        """Записывает файл конфигурации и возвращает путь к нему."""
        source = temp_dir / "ShadowPlay"
        source.mkdir()

        def _write(migrator="concurrency_limit = 16", level="INFO", source_root=None,
                   destination_root=None, text=None):
            if text is None:
                text = SETTINGS_TEMPLATE.format(
                    source=source if source_root is None else source_root,
                    destination=temp_dir / "Souvenir" if destination_root is None else destination_root,
                    migrator=migrator,
                    level=level
                )
            config_file = temp_dir / "settings.ini"
            config_file.write_text(text, encoding='utf-8')
            return str(config_file)

        return _write

    def test_load_config_success(self, write_config, temp_dir):
        """Тест успешной загрузки конфигурации."""
        config = load_config(write_config(
            migrator="concurrency_limit = 4\nchunk_size = 4096\nverify = hash\nmax_retries = 2"
        ))

        assert config.paths.source_root == temp_dir / "ShadowPlay"
        assert config.paths.destination_root == temp_dir / "Souvenir"

        assert config.labels.projects == "Projects"
        assert config.labels.screenshots == "Screenshots"
        assert config.labels.footages == "Footages"

        assert config.migrator.concurrency_limit == 4
        assert config.migrator.chunk_size == 4096
        assert config.migrator.collision_policy == "skip"
        assert config.migrator.verify == "hash"
        assert config.migrator.max_retries == 2
        assert config.migrator.retry_delay == 1.0

        assert config.logging.level == "INFO"
        assert config.logging.log_file == Path("logs/test.log")
        assert config.logging.max_log_size == 10
        assert config.logging.backup_count == 5

    def test_config_file_not_found(self):
        """Тест ошибки при отсутствии файла конфигурации."""
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent_config.ini")

    def test_missing_paths_section(self, write_config):
        """Тест ошибки при отсутствии секции paths."""
        path = write_config(text="[logging]\nlevel = INFO\n")

        with pytest.raises(ValueError, match="Секция 'paths' не найдена"):
            load_config(path)

    def test_labels_and_migrator_sections_are_optional(self, write_config, temp_dir):
        """Тест значений по умолчанию без секций labels и migrator."""
        path = write_config(text=(
            f"[paths]\nsource_root = {temp_dir / 'ShadowPlay'}\n"
            f"destination_root = {temp_dir / 'Souvenir'}\n\n"
            "[logging]\nlevel = DEBUG\n"
        ))

        config = load_config(path)

        assert config.labels == LabelsConfig()
        assert config.migrator == MigratorConfig()
        assert config.migrator.concurrency_limit == 16

    def test_empty_source_root(self, write_config):
        """Тест ошибки при пустом исходном каталоге."""
        with pytest.raises(ValueError, match="source_root"):
            load_config(write_config(source_root=""))

    def test_empty_destination_root(self, write_config):
        """Тест ошибки при пустом целевом каталоге."""
        with pytest.raises(ValueError, match="destination_root"):
            load_config(write_config(destination_root=""))

    def test_missing_source_root(self, write_config, temp_dir):
        """Тест ошибки при несуществующем исходном каталоге."""
        with pytest.raises(ValueError, match="Исходный каталог не существует"):
            load_config(write_config(source_root=temp_dir / "missing"))

    def test_invalid_concurrency_limit(self, write_config):
        """Тест валидации лимита параллельных операций."""
        with pytest.raises(ValueError, match="Лимит параллельных операций должен быть больше 0"):
            load_config(write_config(migrator="concurrency_limit = 0"))

    def test_invalid_collision_policy(self, write_config):
        """Тест валидации политики коллизий."""
        with pytest.raises(ValueError, match="Некорректная политика коллизий"):
            load_config(write_config(migrator="collision_policy = overwrite"))

    def test_invalid_verify_mode(self, write_config):
        """Тест валидации режима проверки."""
        with pytest.raises(ValueError, match="Некорректный режим проверки"):
            load_config(write_config(migrator="verify = crc32"))

    def test_negative_retries(self, write_config):
        """Тест валидации количества попыток."""
        with pytest.raises(ValueError, match="Количество попыток не может быть отрицательным"):
            load_config(write_config(migrator="max_retries = -1"))

    def test_invalid_log_level(self, write_config):
        """Тест валидации некорректного уровня логирования."""
        with pytest.raises(ValueError, match="Некорректный уровень логирования"):
            load_config(write_config(level="INVALID_LEVEL"))

    def test_reload_config(self, write_config):
        """Тест перезагрузки конфигурации."""
        loader = ConfigLoader(write_config())
        config1 = loader.load_config()
        config2 = loader.reload_config()

        assert config1.paths == config2.paths
        assert config1.labels == config2.labels

    def test_get_config_without_load(self):
        """Тест получения конфигурации без предварительной загрузки."""
        loader = ConfigLoader()

        with pytest.raises(ValueError, match="Конфигурация не загружена"):
            loader.get_config()


class TestLabelsConfig:
    """Тесты для LabelsConfig."""

    def test_enabled(self):
        assert LabelsConfig.enabled("Projects")
        assert not LabelsConfig.enabled("")
        assert not LabelsConfig.enabled(None)


class TestValidatePaths:
    """Тесты для функции validate_paths."""

    def test_source_is_file(self, tmp_path):
        """Тест ошибки, когда исходный путь указывает на файл."""
        source = tmp_path / "file.txt"
        source.write_text("x")

        with pytest.raises(ValueError, match="не является каталогом"):
            validate_paths(PathsConfig(source_root=source, destination_root=tmp_path / "dest"))

    def test_valid_paths(self, tmp_path):
        validate_paths(PathsConfig(source_root=tmp_path, destination_root=tmp_path / "dest"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

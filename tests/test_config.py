import pytest

from api_model_compiler.config import CompilerConfig, ConfigError, FieldCorrection, load_config


class TestDefaults:
    def test_shipped_tables(self):
        config = load_config()
        assert config.denylist == ["inline_response_200_11"]
        assert config.name_overrides == {"ref": "git_ref"}
        assert config.pagination_bases == ["Pagination"]
        assert config.ignored_query_params == ["total"]
        assert config.response_type_overrides["SelectedActions"] == "PutActionsSetAllowedActionsRepository"

    def test_discriminator_defaults(self):
        config = load_config()
        assert [(d.field, d.value) for d in config.discriminator_defaults] == [
            ("label", "name"),
            ("_type", "snake_name"),
        ]

    def test_models_file(self):
        assert CompilerConfig().models_file == "models.rs"
        assert CompilerConfig(target_api_prefix="slack").models_file == "slack_models.rs"


class TestOverlay:
    def test_user_file_overrides_key(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("denylist: [Broken]\npackage_version: '1.2.3'\n")
        config = load_config(f)
        assert config.denylist == ["Broken"]
        assert config.package_version == "1.2.3"
        # untouched keys keep the defaults
        assert config.name_overrides == {"ref": "git_ref"}

    def test_none_overrides_are_ignored(self):
        config = load_config(target_api_prefix=None, skip_serializing_if_none=None)
        assert config.target_api_prefix is None
        assert config.skip_serializing_if_none is True

    def test_flag_overrides_win(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("target_api_prefix: file\n")
        assert load_config(f, target_api_prefix="cli").target_api_prefix == "cli"

    def test_empty_file(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("")
        assert load_config(f).denylist == ["inline_response_200_11"]


class TestErrors:
    def test_not_a_mapping(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(f)

    def test_invalid_field(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("denylist: 3\n")
        with pytest.raises(ConfigError):
            load_config(f)

    def test_unreadable_yaml(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("denylist: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(f)


class TestHelpers:
    def test_field_correction_scoped_by_name(self):
        correction = FieldCorrection(base_name="score", datatype="i64", replacement="f32")
        assert correction.matches("score", "i64")
        assert not correction.matches("count", "i64")
        assert not correction.matches("score", "i32")

    def test_field_correction_any_name(self):
        assert FieldCorrection(datatype="Override", replacement="ModelOverride").matches("rule", "Override")

    def test_reference_override_keys(self):
        config = CompilerConfig(reference_overrides=["Reference", "Service.teams"])
        assert config.is_reference_override("Reference")
        assert config.is_reference_override("Service", "teams")
        assert not config.is_reference_override("Service", "escalation_policy")
        assert not config.is_reference_override("Service")

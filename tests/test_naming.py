import pytest

from api_model_compiler.compiler.naming import (
    camelize,
    normalize_version,
    rename_identifiers,
    split_reference,
    to_enum_var_name,
    to_model_name,
    to_operation_id,
    to_var_name,
    underscore,
    upper_snake,
)


class TestCase:
    @pytest.mark.parametrize("raw, expected", [
        ("inline_response_200_1", "InlineResponse2001"),
        ("body_3", "Body3"),
        ("escalation policies", "EscalationPolicies"),
        ("EscalationPolicy", "EscalationPolicy"),
    ])
    def test_camelize(self, raw, expected):
        assert camelize(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("EscalationPolicy", "escalation_policy"),
        ("HTTPRequest", "http_request"),
        ("listIncidents", "list_incidents"),
        ("Escalation Policies", "escalation_policies"),
    ])
    def test_underscore(self, raw, expected):
        assert underscore(raw) == expected

    def test_upper_snake_of_container(self):
        assert upper_snake("Vec<String>") == "VEC_STRING"
        assert upper_snake("EscalationPolicy") == "ESCALATION_POLICY"


class TestIdentifiers:
    def test_model_name(self):
        assert to_model_name("inline_response_201") == "InlineResponse201"
        assert to_model_name("200_ok") == "Model200Ok"
        assert to_model_name("") == "Object"

    def test_model_name_keywords(self):
        assert to_model_name("Override") == "ModelOverride"
        assert to_model_name("type") == "ModelType"
        assert to_model_name("Overrides") == "Overrides"

    def test_var_name_keywords(self):
        assert to_var_name("type") == "_type"
        assert to_var_name("self") == "_self"
        assert to_var_name("_type") == "_type"

    def test_var_name_override(self):
        assert to_var_name("ref", {"ref": "git_ref"}) == "git_ref"

    def test_var_name_brackets(self):
        assert to_var_name("statuses[]") == "statuses"

    def test_enum_var_name(self):
        assert to_enum_var_name("") == "EMPTY"
        assert to_enum_var_name("high") == "HIGH"
        assert to_enum_var_name("1h") == "_1H"

    def test_operation_id_drops_group(self):
        assert to_operation_id("incidents/listIncidents") == "listIncidents"
        assert to_operation_id("listIncidents") == "listIncidents"


class TestReferences:
    def test_split_plain(self):
        assert split_reference("#/components/schemas/Tag") == ("Tag", [])

    def test_split_deep_path(self):
        assert split_reference("#/components/schemas/Tag/allOf/0") == ("Tag", ["allOf", "0"])

    def test_split_swagger2(self):
        assert split_reference("#/definitions/Pet") == ("Pet", [])

    def test_rename_identifiers_whole_tokens(self):
        renames = {"Body1": "CreateIncident"}
        assert rename_identifiers("Vec<Body1>", renames) == "Vec<CreateIncident>"
        assert rename_identifiers("Body10", renames) == "Body10"


class TestVersion:
    def test_pads_from_package_version(self):
        assert normalize_version("2", "0.4.1") == "2.4.1"

    def test_complete_version_untouched(self):
        assert normalize_version("2.0.3", "0.4.1") == "2.0.3"

    def test_short_package_version_pads_zero(self):
        assert normalize_version("2", "1") == "2.0.0"

from api_model_compiler.compiler.enrichment import PropertyEnricher
from api_model_compiler.compiler.model import Property
from api_model_compiler.config import CompilerConfig, load_config
from api_model_compiler.parser.swagger import convert_schema


def _prop(base_name: str, datatype: str, **kwargs) -> Property:
    return Property(base_name=base_name, name=kwargs.pop("name", base_name), datatype=datatype, **kwargs)


class TestRules:
    def setup_method(self):
        self.enricher = PropertyEnricher(load_config())

    def test_open_object_becomes_map(self):
        assert self.enricher.enrich(_prop("meta", "object")).datatype == "HashMap<String, Value>"

    def test_date_time_wins_over_declared_type(self):
        prop = self.enricher.enrich(_prop("created_at", "String", data_format="date-time"))
        assert prop.datatype == "DateTime<Utc>"

    def test_date_time_container_untouched(self):
        prop = self.enricher.enrich(_prop("times", "Vec<DateTime<Utc>>", data_format="date-time", container="array"))
        assert prop.datatype == "Vec<DateTime<Utc>>"

    def test_pointer_sized_int(self):
        assert self.enricher.enrich(_prop("count", "isize")).datatype == "i64"

    def test_score_reaches_fixed_point(self):
        # isize -> i64 by one rule, then i64 -> f32 by the score correction
        assert self.enricher.enrich(_prop("score", "isize")).datatype == "f32"

    def test_score_only_for_that_field(self):
        assert self.enricher.enrich(_prop("points", "i64")).datatype == "i64"

    def test_override_type_renamed(self):
        assert self.enricher.enrich(_prop("rule", "Override")).datatype == "ModelOverride"

    def test_name_override(self):
        prop = self.enricher.enrich(_prop("ref", "String", name="_ref"))
        assert prop.name == "git_ref"
        assert prop.base_name == "ref"

    def test_no_rules_no_change(self):
        prop = _prop("name", "String")
        assert self.enricher.enrich(prop).model_dump() == _prop("name", "String").model_dump()

    def test_rules_follow_config(self):
        enricher = PropertyEnricher(CompilerConfig(name_overrides={"self": "self_url"}))
        assert enricher.enrich(_prop("self", "String", name="_self")).name == "self_url"
        assert enricher.enrich(_prop("score", "i64")).datatype == "i64"


class TestMapShape:
    def test_is_map_like(self):
        assert PropertyEnricher.is_map_like(convert_schema({
            "type": "object", "additionalProperties": True, "properties": {"a": {"type": "string"}},
        }))
        assert not PropertyEnricher.is_map_like(convert_schema({"type": "object", "additionalProperties": True}))
        assert not PropertyEnricher.is_map_like(convert_schema({
            "type": "object", "additionalProperties": {"type": "string"}, "properties": {"a": {"type": "string"}},
        }))

    def test_entries_use_model_names(self):
        enricher = PropertyEnricher(load_config())
        schema = convert_schema({
            "type": "object",
            "additionalProperties": True,
            "properties": {"policy": {"$ref": "#/components/schemas/policy"}, "at": {"type": "string", "format": "date-time"}},
        })

        def resolve(name, sub, owner=None, required=False):
            datatype = "escalation_policy" if sub.ref else "DateTime<Utc>"
            return Property(base_name=name, name=name, datatype=datatype, data_format=sub.format, required=required)

        prop = _prop("bag", "object")
        assert enricher.apply_map_shape(prop, schema, resolve, owner="Holder") is True
        assert [e.datatype for e in prop.meta.map_entries] == ["EscalationPolicy", "DateTime<Utc>"]
        assert prop.datatype == "HashMap<String, Value>"

"""Tests for the dynamic type registry."""

import pytest

from src.xsd_transcoder.errors import UnknownRootTypeError, ValueTagCollisionError
from src.xsd_transcoder.logger import LogLevel
from src.xsd_transcoder.registry import DynamicTypeRegistry
from src.xsd_transcoder.schema_model import DynamicEntity, FieldKind, ScalarKind, SchemaDefinition

PKG = "org.opennms.xmlns.xsd.config.vacuumd"

COLLIDING_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://xmlns.opennms.org/xsd/config/collide"
           elementFormDefault="qualified">
    <xs:element name="collide">
        <xs:complexType>
            <xs:sequence>
                <xs:element name="__VALUE__" type="xs:string" minOccurs="0"/>
            </xs:sequence>
        </xs:complexType>
    </xs:element>
</xs:schema>'''

NAMED_ROOT_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://xmlns.opennms.org/xsd/config/provisiond-configuration"
           xmlns="http://xmlns.opennms.org/xsd/config/provisiond-configuration"
           elementFormDefault="qualified">
    <xs:element name="provisiond-configuration" type="provisiondConfigurationType"/>
    <xs:complexType name="provisiondConfigurationType" mixed="true">
        <xs:choice maxOccurs="unbounded">
            <xs:element name="requisition-def" type="xs:string"/>
            <xs:element name="import-threads" type="xs:unsignedInt"/>
        </xs:choice>
    </xs:complexType>
</xs:schema>'''


SHARED_NAME_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://xmlns.opennms.org/xsd/config/poller"
           xmlns="http://xmlns.opennms.org/xsd/config/poller"
           elementFormDefault="qualified">
    <xs:complexType name="pollerConfig">
        <xs:attribute name="service" type="xs:string"/>
    </xs:complexType>
    <xs:element name="poller-config">
        <xs:complexType>
            <xs:sequence>
                <xs:element name="defaults" type="pollerConfig" minOccurs="0"/>
            </xs:sequence>
            <xs:attribute name="period" type="xs:int"/>
        </xs:complexType>
    </xs:element>
</xs:schema>'''

@pytest.fixture
def registry(vacuumd_xsd_content):
    definition = SchemaDefinition(
        xsd_content=vacuumd_xsd_content,
        namespace="http://xmlns.opennms.org/xsd/config/vacuumd",
        root_element="VacuumdConfiguration",
    )
    return DynamicTypeRegistry(definition, level=LogLevel.ERROR)


def _definition(xsd_content, namespace, root_element):
    return SchemaDefinition(xsd_content=xsd_content, namespace=namespace, root_element=root_element)


class TestDynamicTypeRegistry:
    """Tests for DynamicTypeRegistry class."""

    def test_type_names(self, registry):
        assert registry.type_names() == sorted([
            f"{PKG}.Automations",
            f"{PKG}.Automations.Automation",
            f"{PKG}.Description",
            f"{PKG}.Parameter",
            f"{PKG}.Statement",
            f"{PKG}.VacuumdConfiguration",
        ])
        assert len(registry) == 6
        assert f"{PKG}.Statement" in registry

    def test_root_type(self, registry):
        root = registry.resolve_root_type()

        assert registry.root_type_name == f"{PKG}.VacuumdConfiguration"
        assert root.qualified_name == f"{PKG}.VacuumdConfiguration"
        assert [f.name for f in root.fields] == [
            "period", "enabled", "statement", "automations", "description", "parameter"
        ]
        assert not root.has_value

    def test_root_fields(self, registry):
        root = registry.resolve_root_type()

        period = root.get_field("period")
        assert period.kind == FieldKind.ATTRIBUTE
        assert period.scalar == ScalarKind.INTEGER
        assert period.required

        assert root.get_field("enabled").scalar == ScalarKind.BOOLEAN
        assert not root.get_field("enabled").required

        statement = root.get_field("statement")
        assert statement.kind == FieldKind.ELEMENT
        assert statement.multiple
        assert statement.type_name == f"{PKG}.Statement"
        assert statement.namespace == "http://xmlns.opennms.org/xsd/config/vacuumd"

        automations = root.get_field("automations")
        assert not automations.multiple
        assert automations.type_name == f"{PKG}.Automations"

    def test_simple_content_types_carry_value(self, registry):
        statement = registry.resolve(f"{PKG}.Statement")

        assert statement.has_value
        assert statement.value_scalar == ScalarKind.STRING
        assert [f.name for f in statement.attributes] == ["transactional"]

    def test_nested_anonymous_type(self, registry):
        automation = registry.resolve(f"{PKG}.Automations.Automation")

        assert [f.name for f in automation.fields] == ["name", "interval", "ratio", "trigger-name"]
        assert automation.get_field("interval").scalar == ScalarKind.INTEGER
        assert automation.get_field("ratio").scalar == ScalarKind.DECIMAL
        assert automation.get_field("trigger-name").scalar == ScalarKind.STRING
        assert registry.resolve(f"{PKG}.Automations").get_field("automation").multiple

    def test_unknown_type(self, registry):
        with pytest.raises(UnknownRootTypeError):
            registry.resolve(f"{PKG}.Missing")

    def test_instantiate(self, registry):
        entity = registry.instantiate(f"{PKG}.Parameter")

        assert isinstance(entity, DynamicEntity)
        assert entity.type_name == f"{PKG}.Parameter"

    def test_explicit_root_type(self, vacuumd_xsd_content):
        definition = _definition(
            vacuumd_xsd_content, "http://xmlns.opennms.org/xsd/config/vacuumd", "VacuumdConfiguration"
        )

        registry = DynamicTypeRegistry(definition, root_type=f"{PKG}.Automations", level=LogLevel.ERROR)

        assert registry.resolve_root_type().qualified_name == f"{PKG}.Automations"

    def test_explicit_root_type_missing(self, vacuumd_xsd_content):
        definition = _definition(
            vacuumd_xsd_content, "http://xmlns.opennms.org/xsd/config/vacuumd", "VacuumdConfiguration"
        )
        registry = DynamicTypeRegistry(definition, root_type="com.example.Missing", level=LogLevel.ERROR)

        with pytest.raises(UnknownRootTypeError):
            registry.resolve_root_type()

    def test_value_tag_collision(self):
        definition = _definition(COLLIDING_XSD, "http://xmlns.opennms.org/xsd/config/collide", "collide")

        with pytest.raises(ValueTagCollisionError):
            DynamicTypeRegistry(definition, level=LogLevel.ERROR)

    def test_named_root_type_gets_element_alias(self):
        definition = _definition(
            NAMED_ROOT_XSD,
            "http://xmlns.opennms.org/xsd/config/provisiond-configuration",
            "provisiond-configuration",
        )

        registry = DynamicTypeRegistry(definition, level=LogLevel.ERROR)

        pkg = "org.opennms.xmlns.xsd.config.provisiond_configuration"
        root = registry.resolve_root_type()
        assert registry.root_type_name == f"{pkg}.ProvisiondConfiguration"
        assert root is registry.resolve(f"{pkg}.ProvisiondConfigurationType")
        assert root.has_value

    def test_choice_elements_are_optional_and_repeated(self):
        definition = _definition(
            NAMED_ROOT_XSD,
            "http://xmlns.opennms.org/xsd/config/provisiond-configuration",
            "provisiond-configuration",
        )

        root = DynamicTypeRegistry(definition, level=LogLevel.ERROR).resolve_root_type()

        threads = root.get_field("import-threads")
        assert threads.multiple
        assert not threads.required
        assert threads.scalar == ScalarKind.INTEGER

    def test_element_name_wins_over_named_type(self):
        definition = _definition(SHARED_NAME_XSD, "http://xmlns.opennms.org/xsd/config/poller", "poller-config")

        registry = DynamicTypeRegistry(definition, level=LogLevel.ERROR)

        pkg = "org.opennms.xmlns.xsd.config.poller"
        root = registry.resolve_root_type()
        assert root.qualified_name == f"{pkg}.PollerConfig"
        assert [f.name for f in root.fields] == ["period", "defaults"]
        assert root.get_field("defaults").type_name == f"{pkg}.PollerConfig2"
        assert [f.name for f in registry.resolve(f"{pkg}.PollerConfig2").fields] == ["service"]

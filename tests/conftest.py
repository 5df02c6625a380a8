"""Pytest configuration and fixtures for xsd_transcoder tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from src.xsd_transcoder.config import TranscoderConfig
from src.xsd_transcoder.converter import Transcoder, build_context
from src.xsd_transcoder.logger import LogLevel

VACUUMD_NAMESPACE = "http://xmlns.opennms.org/xsd/config/vacuumd"
VACUUMD_PACKAGE = "org.opennms.xmlns.xsd.config.vacuumd"

VACUUMD_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://xmlns.opennms.org/xsd/config/vacuumd"
           xmlns="http://xmlns.opennms.org/xsd/config/vacuumd"
           elementFormDefault="qualified">

    <xs:element name="VacuumdConfiguration">
        <xs:complexType>
            <xs:sequence>
                <xs:element name="statement" type="statement" minOccurs="0" maxOccurs="unbounded"/>
                <xs:element ref="automations" minOccurs="0"/>
                <xs:element name="description" type="description" minOccurs="0"/>
                <xs:element name="parameter" type="parameter" minOccurs="0" maxOccurs="unbounded"/>
            </xs:sequence>
            <xs:attribute name="period" type="xs:int" use="required"/>
            <xs:attribute name="enabled" type="xs:boolean"/>
        </xs:complexType>
    </xs:element>

    <xs:complexType name="statement">
        <xs:simpleContent>
            <xs:extension base="xs:string">
                <xs:attribute name="transactional" type="xs:boolean" default="true"/>
            </xs:extension>
        </xs:simpleContent>
    </xs:complexType>

    <xs:element name="automations">
        <xs:complexType>
            <xs:sequence>
                <xs:element name="automation" maxOccurs="unbounded">
                    <xs:complexType>
                        <xs:sequence>
                            <xs:element name="trigger-name" type="xs:string" minOccurs="0"/>
                        </xs:sequence>
                        <xs:attribute name="name" type="xs:string" use="required"/>
                        <xs:attribute name="interval" type="xs:long"/>
                        <xs:attribute name="ratio" type="xs:decimal"/>
                    </xs:complexType>
                </xs:element>
            </xs:sequence>
        </xs:complexType>
    </xs:element>

    <xs:complexType name="description">
        <xs:simpleContent>
            <xs:extension base="xs:string">
                <xs:attribute name="lang" type="xs:string"/>
            </xs:extension>
        </xs:simpleContent>
    </xs:complexType>

    <xs:complexType name="parameter">
        <xs:simpleContent>
            <xs:extension base="xs:string">
                <xs:attribute name="key" type="xs:string" use="required"/>
            </xs:extension>
        </xs:simpleContent>
    </xs:complexType>

</xs:schema>'''

VACUUMD_XML = '''<?xml version="1.0" encoding="UTF-8"?>
<VacuumdConfiguration xmlns="http://xmlns.opennms.org/xsd/config/vacuumd" period="86400000" enabled="true">
    <statement>DELETE FROM node WHERE nodetype = 'D';</statement>
    <statement transactional="false">DELETE FROM ipinterface WHERE ismanaged = 'D';</statement>
    <automations>
        <automation name="cosmicClear" interval="30000" ratio="0.5">
            <trigger-name>selectResolved</trigger-name>
        </automation>
    </automations>
    <description lang="en">   </description>
    <parameter key="retries">3</parameter>
</VacuumdConfiguration>'''

# Only attributes and element-only content: no node carries text.
PLAIN_XML = '''<?xml version="1.0" encoding="UTF-8"?>
<VacuumdConfiguration xmlns="http://xmlns.opennms.org/xsd/config/vacuumd" period="60000">
    <automations>
        <automation name="a1" interval="10"/>
        <automation name="a2"/>
    </automations>
</VacuumdConfiguration>'''

NO_PLATFORM_NAMESPACE_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://example.com/test"
           elementFormDefault="qualified">
    <xs:element name="person">
        <xs:complexType>
            <xs:attribute name="id" type="xs:string"/>
        </xs:complexType>
    </xs:element>
</xs:schema>'''

SECOND_PLATFORM_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://xmlns.opennms.org/xsd/config/common"
           elementFormDefault="qualified">
    <xs:complexType name="common-parameter">
        <xs:attribute name="key" type="xs:string"/>
    </xs:complexType>
</xs:schema>'''

TWO_PLATFORM_NAMESPACES_XSD = '''<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://xmlns.opennms.org/xsd/config/poller"
           xmlns:common="http://xmlns.opennms.org/xsd/config/common"
           elementFormDefault="qualified">
    <xs:import namespace="http://xmlns.opennms.org/xsd/config/common" schemaLocation="common.xsd"/>
    <xs:element name="poller-configuration">
        <xs:complexType>
            <xs:sequence>
                <xs:element name="parameter" type="common:common-parameter" minOccurs="0" maxOccurs="unbounded"/>
            </xs:sequence>
        </xs:complexType>
    </xs:element>
</xs:schema>'''


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def vacuumd_xsd_content() -> str:
    return VACUUMD_XSD


@pytest.fixture
def vacuumd_xml() -> str:
    return VACUUMD_XML


@pytest.fixture
def plain_xml() -> str:
    return PLAIN_XML


@pytest.fixture
def vacuumd_xsd_file(temp_dir: Path) -> Path:
    """Write the vacuumd schema into the temporary directory."""
    xsd_file = temp_dir / "vacuumd-configuration.xsd"
    xsd_file.write_text(VACUUMD_XSD, encoding="utf-8")
    return xsd_file


@pytest.fixture
def two_namespace_dir(temp_dir: Path) -> Path:
    """A schema importing a second platform namespace."""
    (temp_dir / "common.xsd").write_text(SECOND_PLATFORM_XSD, encoding="utf-8")
    (temp_dir / "poller-configuration.xsd").write_text(TWO_PLATFORM_NAMESPACES_XSD, encoding="utf-8")
    return temp_dir


@pytest.fixture
def vacuumd_config(vacuumd_xsd_file: Path) -> TranscoderConfig:
    """Configuration for the vacuumd schema with logging suppressed."""
    config = TranscoderConfig(
        schema_resource=str(vacuumd_xsd_file),
        root_element="VacuumdConfiguration",
    )
    config.logging.level = LogLevel.ERROR  # Suppress logs in tests
    return config


@pytest.fixture
def vacuumd_context(vacuumd_config):
    return build_context(vacuumd_config)


@pytest.fixture
def transcoder(vacuumd_config) -> Transcoder:
    return Transcoder.from_config(vacuumd_config)


@pytest.fixture
def override_transcoder(vacuumd_config) -> Transcoder:
    vacuumd_config.overrides = {"parameter": "value", "statement": "sql"}
    return Transcoder.from_config(vacuumd_config)


@pytest.fixture
def no_platform_xsd() -> str:
    return NO_PLATFORM_NAMESPACE_XSD

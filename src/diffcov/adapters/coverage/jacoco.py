"""JaCoCo coverage adapter for Java projects.

JaCoCo is the standard coverage tool for JVM projects. It integrates with
Gradle (jacoco plugin) and Maven (jacoco-maven-plugin) and produces XML reports
of the form::

    <report name="...">
      <package name="com/acme">
        <class name="com/acme/Foo" sourcefilename="Foo.java">
          <method name="bar" desc="()V" line="10">
            <counter type="INSTRUCTION" missed="1" covered="3"/>
          </method>
          <counter type="INSTRUCTION" missed="1" covered="3"/>
        </class>
      </package>
    </report>
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from diffcov.adapters.coverage.base import (
    ClassCoverage,
    CoverageAdapter,
    CoverageCounter,
    CoverageReport,
    CoverageReportError,
    PackageCoverage,
)

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)

# JaCoCo report paths (Gradle: build/reports/jacoco/...; Maven: target/site/jacoco/jacoco.xml)
_JACOCO_PATHS = [
    "target/site/jacoco/jacoco.xml",
    "build/reports/jacoco/test/jacocoTestReport.xml",
    "build/reports/jacoco/test/jacoco.xml",
    "build/jacoco/test/jacocoTestReport.xml",
    "target/jacoco.xml",
]

COUNTER_TYPES = frozenset({"INSTRUCTION", "BRANCH", "LINE", "COMPLEXITY", "METHOD", "CLASS"})


def _int_attr(element: XmlElement, key: str, default: int = 0) -> int:
    value = element.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_counters(elements: list[XmlElement]) -> list[CoverageCounter]:
    return [
        CoverageCounter(
            type=counter.get("type", ""),
            missed=_int_attr(counter, "missed"),
            covered=_int_attr(counter, "covered"),
        )
        for counter in elements
    ]


def _parse_class(class_elem: XmlElement) -> ClassCoverage:
    counters = _parse_counters(class_elem.findall("counter"))
    if not counters:
        # Older or trimmed reports only carry counters on <method> children.
        counters = _parse_counters(class_elem.findall("method/counter"))
    return ClassCoverage(
        name=class_elem.get("name", ""),
        source_filename=class_elem.get("sourcefilename", ""),
        counters=counters,
    )


def _parse_jacoco_xml(coverage_file: Path) -> CoverageReport:
    """Parse JaCoCo XML report into unified CoverageReport."""
    try:
        with coverage_file.open("rb") as fh:
            tree = ElementTree.parse(fh)
    except OSError as e:
        raise CoverageReportError(f"Cannot read JaCoCo report {coverage_file}: {e}") from e
    except (DefusedParseError, DefusedXmlException) as e:
        raise CoverageReportError(f"Failed to parse JaCoCo XML {coverage_file}: {e}") from e

    root = tree.getroot()
    if root.tag != "report":
        raise CoverageReportError(f"JaCoCo XML root is not <report>: {root.tag}")

    packages: list[PackageCoverage] = []
    for package in root.iter("package"):
        packages.append(
            PackageCoverage(
                name=package.get("name", ""),
                classes=[_parse_class(c) for c in package.findall("class")],
            )
        )

    report = CoverageReport(packages=packages)
    logger.debug(
        "Parsed JaCoCo report %s: %d packages, %d classes",
        coverage_file,
        len(packages),
        report.class_count,
    )
    return report


class JaCoCoAdapter(CoverageAdapter):
    """JaCoCo coverage adapter for Java projects.

    Supports parsing JaCoCo XML reports produced by:
    - Gradle JaCoCo plugin
    - Maven jacoco-maven-plugin
    """

    @property
    def name(self) -> str:
        return "jacoco"

    def detect(self, project_path: Path) -> Path | None:
        """Return the first standard JaCoCo report location that exists."""
        for candidate in _JACOCO_PATHS:
            path = project_path / candidate
            if path.is_file():
                return path
        return None

    def parse_coverage_file(self, coverage_file: Path) -> CoverageReport:
        """Parse JaCoCo XML report into unified CoverageReport."""
        return _parse_jacoco_xml(coverage_file)

"""Load YAML assessment configurations into frozen dataclasses."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple

import yaml

from fatigue.core.interpolate import InterpolationMethod
from fatigue.stress import StressCriterion

__all__ = [
    "AssessmentConfig",
    "ConfigError",
    "Damage",
    "InterpolationConfig",
    "Material",
    "MeanStress",
    "Node",
    "ParseConfig",
    "PointSpec",
    "SafetyFactor",
    "Solution",
    "StressCriteria",
    "TimeSeries",
    "load_config",
    "parse_config",
]

_MISSING = object()


class ConfigError(ValueError):
    """The assessment configuration is malformed or incomplete."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


def _section(payload: Mapping[str, Any], key: str, *, path: str) -> Mapping[str, Any]:
    value = payload.get(key, _MISSING)
    qualified = f"{path}.{key}" if path else key
    if value is _MISSING or value is None:
        raise ConfigError(f"Missing configuration section '{qualified}'", key=qualified)
    if not isinstance(value, MappingABC):
        raise ConfigError(f"Configuration section '{qualified}' must be a mapping", key=qualified)
    return value


def _required(payload: Mapping[str, Any], key: str, *, path: str) -> Any:
    value = payload.get(key, _MISSING)
    if value is _MISSING or value is None:
        qualified = f"{path}.{key}" if path else key
        raise ConfigError(f"Missing configuration key '{qualified}'", key=qualified)
    return value


def _coerce(value: Any, kind: type, *, key: str) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Configuration key '{key}' must be {kind.__name__}, got {value!r}", key=key
        ) from exc


def _optional_path(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.upper() == "NONE":
        return None
    return text


def _deep_copy_mapping(source: Mapping[str, Any]) -> dict[str, Any]:
    copied: dict[str, Any] = {}
    for key, value in source.items():
        key_str = str(key)
        if isinstance(value, MappingABC):
            copied[key_str] = _deep_copy_mapping(value)
        else:
            copied[key_str] = value
    return copied


@dataclass(frozen=True, slots=True)
class StressCriteria:
    method: StressCriterion
    number: Optional[int] = None


@dataclass(frozen=True, slots=True)
class MeanStress:
    mean: str = "NONE"
    postfix: str = ""
    number: int = 0


@dataclass(frozen=True, slots=True)
class Node:
    """Inclusive range of node identifiers to assess."""

    start: int
    end: int
    path: Optional[str] = None

    def __contains__(self, node: object) -> bool:
        if not isinstance(node, int):
            return False
        return self.start <= node <= self.end


@dataclass(frozen=True, slots=True)
class Damage:
    error: float = 0.0
    dadm: float = 1.0


@dataclass(frozen=True, slots=True)
class Solution:
    run_type: str
    mode: str
    output: str
    stress_criteria: StressCriteria
    node: Node
    mean: MeanStress = field(default_factory=MeanStress)
    damage: Damage = field(default_factory=Damage)


@dataclass(frozen=True, slots=True)
class Material:
    name: str
    youngs_modulus: float
    poissons_ratio: float
    yield_stress: float
    ultimate_stress: float
    fatigue: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class SafetyFactor:
    gmre: float = 1.0
    gmrm: float = 1.0
    gmfat: float = 1.0


@dataclass(frozen=True, slots=True)
class ParseConfig:
    """How unit stress files are split into rows and columns."""

    header: int = 0
    delimiter: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PointSpec:
    file: str
    coordinates: Tuple[float, ...]


@dataclass(frozen=True, slots=True)
class InterpolationConfig:
    name: str
    method: InterpolationMethod
    path: str
    points: Tuple[PointSpec, ...]
    parse_config: ParseConfig = field(default_factory=ParseConfig)
    scale: float = 1.0
    dimension: Optional[int] = None
    sensor: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TimeSeries:
    interpolations: Tuple[InterpolationConfig, ...]
    path: Optional[str] = None
    sensorfile: Optional[str] = None
    loadcases: Tuple[Mapping[str, Any], ...] = ()
    parameters: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    order: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AssessmentConfig:
    solution: Solution
    material: Material
    safety_factor: SafetyFactor
    timeseries: TimeSeries
    source: Optional[Path] = None

    @property
    def base_dir(self) -> Path:
        """Directory that relative paths in the configuration refer to."""

        if self.source is None:
            return Path.cwd()
        return self.source.parent


def _parse_solution(payload: Mapping[str, Any]) -> Solution:
    path = "solution"
    criteria_raw = _section(payload, "stress_criteria", path=path)
    method_raw = _required(criteria_raw, "method", path=f"{path}.stress_criteria")
    try:
        method = StressCriterion.from_name(method_raw)
    except ValueError as exc:
        raise ConfigError(str(exc), key=f"{path}.stress_criteria.method") from exc
    number_raw = criteria_raw.get("number")
    number = (
        None
        if number_raw is None
        else _coerce(number_raw, int, key=f"{path}.stress_criteria.number")
    )

    node_raw = _section(payload, "node", path=path)
    node = Node(
        start=_coerce(_required(node_raw, "from", path=f"{path}.node"), int, key=f"{path}.node.from"),
        end=_coerce(_required(node_raw, "to", path=f"{path}.node"), int, key=f"{path}.node.to"),
        path=_optional_path(node_raw.get("path")),
    )

    mean_raw = payload.get("mean")
    mean = MeanStress()
    if isinstance(mean_raw, MappingABC):
        mean = MeanStress(
            mean=str(mean_raw.get("mean", "NONE")),
            postfix=str(mean_raw.get("postfix", "")),
            number=_coerce(mean_raw.get("number", 0), int, key=f"{path}.mean.number"),
        )

    damage_raw = payload.get("damage")
    damage = Damage()
    if isinstance(damage_raw, MappingABC):
        damage = Damage(
            error=_coerce(damage_raw.get("error", 0.0), float, key=f"{path}.damage.error"),
            dadm=_coerce(damage_raw.get("dadm", 1.0), float, key=f"{path}.damage.dadm"),
        )

    return Solution(
        run_type=str(payload.get("run_type", "FAT")),
        mode=str(payload.get("mode", "STRESS")),
        output=str(payload.get("output", "JSON")),
        stress_criteria=StressCriteria(method=method, number=number),
        node=node,
        mean=mean,
        damage=damage,
    )


def _parse_material(payload: Mapping[str, Any]) -> Material:
    path = "material"

    def number(key: str) -> float:
        return _coerce(_required(payload, key, path=path), float, key=f"{path}.{key}")

    fatigue_raw = payload.get("fatigue")
    fatigue = (
        MappingProxyType(_deep_copy_mapping(fatigue_raw))
        if isinstance(fatigue_raw, MappingABC)
        else MappingProxyType({})
    )
    return Material(
        name=str(_required(payload, "name", path=path)),
        youngs_modulus=number("youngs_modulus"),
        poissons_ratio=number("poissons_ratio"),
        yield_stress=number("yield_stress"),
        ultimate_stress=number("ultimate_stress"),
        fatigue=fatigue,
    )


def _parse_safety_factor(payload: Mapping[str, Any]) -> SafetyFactor:
    return SafetyFactor(
        **{
            key: _coerce(payload.get(key, 1.0), float, key=f"safety_factor.{key}")
            for key in ("gmre", "gmrm", "gmfat")
        }
    )


def _parse_point(payload: Any, *, path: str) -> PointSpec:
    if not isinstance(payload, MappingABC):
        raise ConfigError(f"Entry '{path}' must be a mapping", key=path)
    coordinates_raw = _required(payload, "coordinates", path=path)
    if isinstance(coordinates_raw, (str, bytes)) or not isinstance(coordinates_raw, Sequence):
        raise ConfigError(f"'{path}.coordinates' must be a list of numbers", key=f"{path}.coordinates")
    coordinates = tuple(
        _coerce(value, float, key=f"{path}.coordinates") for value in coordinates_raw
    )
    return PointSpec(file=str(_required(payload, "file", path=path)), coordinates=coordinates)


def _parse_interpolation(payload: Any, *, path: str) -> InterpolationConfig:
    if not isinstance(payload, MappingABC):
        raise ConfigError(f"Entry '{path}' must be a mapping", key=path)
    method_raw = payload.get("method", InterpolationMethod.LINEAR.value)
    try:
        method = InterpolationMethod.from_name(method_raw)
    except ValueError as exc:
        raise ConfigError(str(exc), key=f"{path}.method") from exc

    points_raw = _required(payload, "points", path=path)
    if not isinstance(points_raw, Sequence) or isinstance(points_raw, (str, bytes)):
        raise ConfigError(f"'{path}.points' must be a list", key=f"{path}.points")
    points = tuple(
        _parse_point(entry, path=f"{path}.points[{index}]")
        for index, entry in enumerate(points_raw)
    )

    parse_raw = payload.get("parse_config")
    parse = ParseConfig()
    if isinstance(parse_raw, MappingABC):
        delimiter = parse_raw.get("delimiter")
        parse = ParseConfig(
            header=_coerce(parse_raw.get("header", 0), int, key=f"{path}.parse_config.header"),
            delimiter=None if delimiter in (None, "", " ") else str(delimiter),
        )

    dimension_raw = payload.get("dimension")
    dimension = (
        None if dimension_raw is None else _coerce(dimension_raw, int, key=f"{path}.dimension")
    )
    if dimension is not None:
        for index, point in enumerate(points):
            if len(point.coordinates) != dimension:
                raise ConfigError(
                    f"'{path}.points[{index}].coordinates' has {len(point.coordinates)} "
                    f"values, expected {dimension}",
                    key=f"{path}.points[{index}].coordinates",
                )

    sensor_raw = payload.get("sensor") or ()
    return InterpolationConfig(
        name=str(_required(payload, "name", path=path)),
        method=method,
        path=str(_required(payload, "path", path=path)),
        points=points,
        parse_config=parse,
        scale=_coerce(payload.get("scale", 1.0), float, key=f"{path}.scale"),
        dimension=dimension,
        sensor=tuple(str(name) for name in sensor_raw),
    )


def _parse_timeseries(payload: Mapping[str, Any]) -> TimeSeries:
    path = "timeseries"
    interpolations_raw = _required(payload, "interpolations", path=path)
    if not isinstance(interpolations_raw, Sequence) or isinstance(interpolations_raw, (str, bytes)):
        raise ConfigError(f"'{path}.interpolations' must be a list", key=f"{path}.interpolations")
    interpolations = tuple(
        _parse_interpolation(entry, path=f"{path}.interpolations[{index}]")
        for index, entry in enumerate(interpolations_raw)
    )

    loadcases = tuple(
        MappingProxyType(_deep_copy_mapping(entry))
        for entry in payload.get("loadcases") or ()
        if isinstance(entry, MappingABC)
    )

    parameters_raw = payload.get("parameters") or {}
    variables_raw = payload.get("variables") or {}
    if not isinstance(parameters_raw, MappingABC):
        raise ConfigError(f"'{path}.parameters' must be a mapping", key=f"{path}.parameters")
    if not isinstance(variables_raw, MappingABC):
        raise ConfigError(f"'{path}.variables' must be a mapping", key=f"{path}.variables")
    parameters = {
        str(key): _coerce(value, float, key=f"{path}.parameters.{key}")
        for key, value in parameters_raw.items()
    }
    variables = {str(key): str(value) for key, value in variables_raw.items()}

    expressions_raw = payload.get("expressions")
    order: Tuple[str, ...] = ()
    if isinstance(expressions_raw, MappingABC):
        order = tuple(str(name) for name in expressions_raw.get("order") or ())

    return TimeSeries(
        interpolations=interpolations,
        path=_optional_path(payload.get("path")),
        sensorfile=_optional_path(payload.get("sensorfile")),
        loadcases=loadcases,
        parameters=MappingProxyType(parameters),
        variables=MappingProxyType(variables),
        order=order,
    )


def parse_config(payload: Mapping[str, Any], *, source: Optional[Path] = None) -> AssessmentConfig:
    """Build an :class:`AssessmentConfig` from a decoded YAML mapping."""

    if not isinstance(payload, MappingABC):
        raise ConfigError("Assessment configuration must decode to a mapping")
    return AssessmentConfig(
        solution=_parse_solution(_section(payload, "solution", path="")),
        material=_parse_material(_section(payload, "material", path="")),
        safety_factor=_parse_safety_factor(_section(payload, "safety_factor", path="")),
        timeseries=_parse_timeseries(_section(payload, "timeseries", path="")),
        source=source,
    )


def load_config(path: str | Path) -> AssessmentConfig:
    """Read and parse the YAML assessment configuration stored at ``path``."""

    source = Path(path).expanduser()
    if not source.is_file():
        raise FileNotFoundError(source)
    with source.open("r", encoding="utf-8") as buffer:
        text = buffer.read()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in assessment configuration: {source}") from exc
    if data is None:
        raise ConfigError(f"Assessment configuration {source} is empty")
    return parse_config(data, source=source.resolve())

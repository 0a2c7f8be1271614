"""Configuration classes for robust markup parsing.

This module provides configuration objects for the tokenizer and the tree
builder, enabling explicit, deterministic control over how malformed markup
is normalized.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Dict, List, Optional

_COMPONENT_FIELDS = ("tokenizer", "tree", "global_")


class UnterminatedTagPolicy(Enum):
    """What to emit when the input ends before a tag's closing '>'."""

    EMIT_TAG = auto()    # Rest of the input becomes the tag name
    EMIT_TEXT = auto()   # Raw remainder, including '<' or '</', becomes text


class EmptyTagPolicy(Enum):
    """What to emit for '<>' and '</>'."""

    DROP = auto()        # No token is emitted
    AS_TEXT = auto()     # Raw characters join the surrounding text run


class CloseTagPolicy(Enum):
    """How an end tag is matched against the open-element stack."""

    IMPLICIT_CLOSE = auto()   # Close down to the innermost element of that name
    STRICT_MATCH = auto()     # Close only when the innermost element matches
    POP_INNERMOST = auto()    # Close the innermost element whatever its name


@dataclass
class TokenizerConfig:
    """Configuration for the markup tokenizer."""

    unterminated_tag_policy: UnterminatedTagPolicy = UnterminatedTagPolicy.EMIT_TAG
    empty_tag_policy: EmptyTagPolicy = EmptyTagPolicy.DROP

    def __post_init__(self) -> None:
        """Validate tokenizer configuration."""
        if not isinstance(self.unterminated_tag_policy, UnterminatedTagPolicy):
            raise ValueError(
                "unterminated_tag_policy must be an UnterminatedTagPolicy"
            )
        if not isinstance(self.empty_tag_policy, EmptyTagPolicy):
            raise ValueError("empty_tag_policy must be an EmptyTagPolicy")


@dataclass
class TreeConfig:
    """Configuration for tree building and end-tag resolution."""

    close_tag_policy: CloseTagPolicy = CloseTagPolicy.IMPLICIT_CLOSE
    report_unclosed_elements: bool = True

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if not isinstance(self.close_tag_policy, CloseTagPolicy):
            raise ValueError("close_tag_policy must be a CloseTagPolicy")


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "WARNING"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_diagnostics: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Complete configuration for the markup parser.

    Immutable, so a single instance can be shared by parsers running on
    different threads.
    """

    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete parser configuration."""
        try:
            self.tokenizer.__post_init__()
            self.tree.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Keyword arguments for configuration fields to override

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> new_config = config.override(
            ...     tree__close_tag_policy=CloseTagPolicy.STRICT_MATCH,
            ...     global___logging_level="DEBUG"
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            component = next(
                (name for name in _COMPONENT_FIELDS if key.startswith(f"{name}__")),
                None,
            )
            if component is None:
                nested_overrides[key] = value
            else:
                field_name = key[len(component) + 2:]
                nested_overrides.setdefault(component, {})[field_name] = value

        new_fields: Dict[str, Any] = {}
        for field_name in _COMPONENT_FIELDS:
            current_config = getattr(self, field_name)
            if field_name in nested_overrides:
                try:
                    new_fields[field_name] = replace(
                        current_config, **nested_overrides[field_name]
                    )
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=field_name) from e

        for key, value in nested_overrides.items():
            if key not in _COMPONENT_FIELDS:
                new_fields[key] = value

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary representation of the configuration
        """
        def _dataclass_to_dict(obj: Any) -> Any:
            """Recursively convert dataclass to dict."""
            if hasattr(obj, "__dataclass_fields__"):
                result: Dict[str, Any] = {}
                for name in obj.__dataclass_fields__:
                    result[name] = _dataclass_to_dict(getattr(obj, name))
                return result
            if isinstance(obj, Enum):
                return obj.name
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are ignored; enum members are given by name.

        Args:
            data: Dictionary containing configuration data

        Returns:
            ParserConfig instance created from dictionary
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            """Convert dict to dataclass instance."""
            if not isinstance(data_dict, dict):
                raise ConfigValidationError(
                    f"Expected a mapping for {target_class.__name__}"
                )

            field_values: Dict[str, Any] = {}
            for field_name, field_info in target_class.__dataclass_fields__.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                field_type = field_info.type

                if hasattr(field_type, "__dataclass_fields__"):
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                elif hasattr(field_type, "__members__") and isinstance(value, str):
                    try:
                        field_values[field_name] = field_type[value.upper()]
                    except KeyError as e:
                        raise ConfigValidationError(
                            f"Unknown {field_type.__name__} value: {value}",
                            field_name=field_name,
                            suggestions=list(field_type.__members__),
                        ) from e
                else:
                    field_values[field_name] = value

            try:
                return target_class(**field_values)
            except ValueError as e:
                raise ConfigValidationError(str(e)) from e

        return _dict_to_dataclass(data, cls)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Preset closing mismatched elements implicitly (the default)."""
        return cls(
            tree=TreeConfig(close_tag_policy=CloseTagPolicy.IMPLICIT_CLOSE),
            name="lenient",
            description="Close down to the innermost element named by an end tag",
        )

    @classmethod
    def strict(cls) -> "ParserConfig":
        """Preset that only honours end tags matching the innermost element."""
        return cls(
            tree=TreeConfig(close_tag_policy=CloseTagPolicy.STRICT_MATCH),
            name="strict",
            description="Ignore end tags that do not match the innermost element",
        )

    @classmethod
    def reference(cls) -> "ParserConfig":
        """Preset reproducing the historical pop-on-any-end-tag behaviour."""
        return cls(
            tokenizer=TokenizerConfig(
                unterminated_tag_policy=UnterminatedTagPolicy.EMIT_TAG,
                empty_tag_policy=EmptyTagPolicy.DROP,
            ),
            tree=TreeConfig(close_tag_policy=CloseTagPolicy.POP_INNERMOST),
            name="reference",
            description="Every end tag closes the innermost open element",
        )

from __future__ import annotations
from dataclasses import dataclass, field
from string import Formatter
from typing import Any, Dict, Optional, Set
import logging
import yaml

from md_translator.errors import ConfigurationError
from md_translator.llm.prompts import DEFAULT_TEMPLATES, REQUIRED_PLACEHOLDERS

logger = logging.getLogger(__name__)

DEFAULT_TARGET_LANGUAGE = "Japanese"


@dataclass
class PromptPack:
    """Prompt templates resolved once at start-up, keyed by stage then role."""
    templates: Dict[str, Dict[str, str]]
    target_language: str = DEFAULT_TARGET_LANGUAGE
    additional_instructions: str = ""
    source: str = "builtin"

    def system(self, stage: str) -> str:
        return self.templates[stage]["system"].format(target_language=self.target_language)

    def user(self, stage: str, **values: str) -> str:
        return self.templates[stage]["user"].format(**values)


def _placeholders(template: str) -> Set[str]:
    return {name for _, name, _, _ in Formatter().parse(template) if name}


def _validate_template(stage: str, role: str, template: Any) -> str:
    if not isinstance(template, str) or not template.strip():
        raise ConfigurationError(f"Prompt {stage}.{role} must be a non-empty string")
    try:
        found = _placeholders(template)
    except ValueError as e:
        raise ConfigurationError(f"Prompt {stage}.{role} is not a valid template: {e}")
    required = REQUIRED_PLACEHOLDERS[(stage, role)]
    missing = required - found
    if missing:
        raise ConfigurationError(
            f"Prompt {stage}.{role} is missing placeholders: {', '.join(sorted(missing))}"
        )
    unknown = found - required
    if unknown:
        raise ConfigurationError(
            f"Prompt {stage}.{role} uses unknown placeholders: {', '.join(sorted(unknown))}"
        )
    return template


def load_prompt_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read prompt pack {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in prompt pack {path}: {e}")


def load_prompt_pack(
    path: Optional[str] = None,
    target_language: Optional[str] = None,
    additional_instructions: str = "",
) -> PromptPack:
    """
    Build the prompt pack: built-in templates, overridden by a YAML file.

    The YAML file may set `target_language` and any of
    `translate.system`, `translate.user`, `proofread.system`,
    `proofread.user`. An explicit target_language argument wins over
    the file.
    """
    templates = {stage: dict(roles) for stage, roles in DEFAULT_TEMPLATES.items()}
    file_language = None

    if path:
        data = load_prompt_file(path)
        if not isinstance(data, dict):
            raise ConfigurationError(f"Prompt pack {path} must be a mapping")
        for key, value in data.items():
            if key == "target_language":
                file_language = str(value)
                continue
            if key not in templates:
                raise ConfigurationError(f"Unknown stage '{key}' in prompt pack {path}")
            if not isinstance(value, dict):
                raise ConfigurationError(f"Stage '{key}' in prompt pack {path} must be a mapping")
            for role, template in value.items():
                if role not in ("system", "user"):
                    raise ConfigurationError(f"Unknown role '{key}.{role}' in prompt pack {path}")
                templates[key][role] = template
        logger.info(f"Loaded prompt pack: {path}")

    for stage, roles in templates.items():
        for role, template in roles.items():
            _validate_template(stage, role, template)

    return PromptPack(
        templates=templates,
        target_language=target_language or file_language or DEFAULT_TARGET_LANGUAGE,
        additional_instructions=additional_instructions,
        source=path or "builtin",
    )

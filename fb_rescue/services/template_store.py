"""Persisted command templates and placeholder substitution."""

import json
import logging
import os
import re
import shlex
import tempfile
from pathlib import Path
from typing import Mapping

from pydantic import ValidationError

from ..models.templates import TEMPLATE_KEYS, TemplateSet

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([A-Z_]+)\}")


def render(template: str, context: Mapping[str, str]) -> str:
    """Substitute every {PLACEHOLDER}; unknown ones become empty strings.

    Purely textual: values containing spaces must already be quoted by the
    caller.
    """
    return _PLACEHOLDER.sub(lambda m: str(context.get(m.group(1), "")), template)


def render_argv(template: str, context: Mapping[str, str]) -> list[str]:
    """Split the template into arguments first, then substitute in each one.

    Values never need quoting here, so paths with spaces or backslashes stay
    a single argument. Arguments that render empty are dropped.
    """
    argv = [render(token, context) for token in shlex.split(template)]
    return [arg for arg in argv if arg]


class CommandTemplateStore:
    """Load and save the template document kept in settings.json."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> TemplateSet:
        data = {}
        try:
            with open(self.path, encoding="utf-8") as f:
                saved = json.load(f)
            if isinstance(saved, dict):
                data = saved
            else:
                logger.warning(f"Ignoring non-object settings in {self.path}")
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path}, using defaults: {e}")

        merged = TemplateSet().model_dump(by_alias=True)
        legacy = {
            name: field.alias
            for name, field in TemplateSet.model_fields.items()
            if field.alias
        }
        for key, value in data.items():
            key = legacy.get(key, key)
            if key not in merged:
                continue
            # Bad values fall back to the default one key at a time.
            try:
                TemplateSet.model_validate({**merged, key: value})
            except ValidationError as e:
                logger.warning(f"Ignoring invalid '{key}' in {self.path}: {e}")
                continue
            merged[key] = value
        return TemplateSet.model_validate(merged)

    def save(self, templates: TemplateSet) -> bool:
        """Write atomically; on failure the previous file is left as it was."""
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".settings-", suffix=".json", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(templates.model_dump(by_alias=True), f, indent=2)
            os.replace(tmp_name, self.path)
            return True
        except OSError as e:
            logger.error(f"Could not save templates to {self.path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False

    def reset_to_default(self) -> TemplateSet:
        defaults = TemplateSet()
        if not self.save(defaults):
            logger.warning("Defaults restored in memory only")
        return defaults

    @staticmethod
    def active(templates: TemplateSet) -> dict[str, str]:
        """Command strings to run: built-ins unless custom ones are opted in."""
        source = templates if templates.use_custom else TemplateSet()
        return {key: source.template_for(key) for key in TEMPLATE_KEYS}

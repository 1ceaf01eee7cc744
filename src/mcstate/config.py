"""Save configuration."""

from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml


@dataclass
class SaveOptions:
    """Options controlling how `mcstate.save` treats its target.

    Attributes:
        overwrite: Replace an existing file (a backup is kept until done)
        rename: Pick a free file name if the target exists
        compress: Let the backend compress its output
        backend_options: Extra keyword arguments for the backend
    """

    overwrite: bool = False
    rename: bool = True
    compress: bool = True
    backend_options: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict | None) -> "SaveOptions":
        """Create from a dictionary, rejecting unknown keys."""
        data = dict(data or {})
        unknown = set(data) - {"overwrite", "rename", "compress", "backend_options"}
        if unknown:
            raise ValueError(f"Unknown save options: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, filepath: str | Path, section: str | None = "save") -> "SaveOptions":
        """Load options from a YAML file.

        Args:
            filepath: YAML file
            section: Top-level key holding the options, or None if the
                options are the whole document

        Returns:
            SaveOptions (defaults for anything not given)
        """
        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        if section is not None:
            data = data.get(section) or {}
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)

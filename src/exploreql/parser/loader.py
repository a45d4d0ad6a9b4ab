"""YAML/JSON parser and explore registry for ExploreQL.

explore definitions live in plain files so they can be reviewed and diffed
like any other code. yaml is the usual format but json works too since an
explore is just a json-shaped object.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from exploreql.models.explore import Explore

logger = logging.getLogger(__name__)

EXPLORE_FILE_PATTERNS = ("**/*.yaml", "**/*.yml", "**/*.json")


class ExploreRegistry:
    """Registry of all explores loaded from a directory.

    explores are validated as they're loaded (table references, duplicate
    field ids) so a broken definition fails here rather than at query time.
    """

    def __init__(self) -> None:
        self.explores: dict[str, Explore] = {}

    def load_directory(self, path: Path) -> None:
        """Load every definition file under a directory, recursively."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Explores directory not found: {path}")

        files = sorted({f for pattern in EXPLORE_FILE_PATTERNS for f in path.glob(pattern)})
        if not files:
            raise ValueError(f"No explore definition files found in {path}")

        for file in files:
            self._load_file(file)

        logger.info("Loaded %d explores from %s", len(self.explores), path)

    def _load_file(self, path: Path) -> None:
        """Parse a single definition file.

        a file holds an "explores" list. empty files are ignored.
        """
        with open(path) as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if data is None:
            return

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping at the top of {path}")

        for explore_data in data.get("explores", []):
            self.add_explore(self.parse_explore(explore_data))

    @staticmethod
    def parse_explore(data: dict[str, Any]) -> Explore:
        return Explore.model_validate(data)

    def add_explore(self, explore: Explore) -> None:
        if explore.name in self.explores:
            raise ValueError(f"Duplicate explore: {explore.name}")
        self.explores[explore.name] = explore
        logger.debug("Registered explore %s (%d tables)", explore.name, len(explore.tables))

    def get_explore(self, name: str) -> Explore:
        """Get an explore by name."""
        if name not in self.explores:
            raise KeyError(f"Unknown explore: {name}")
        return self.explores[name]


def explore_to_dict(explore: Explore) -> dict[str, Any]:
    """Dump an explore in its camelCase wire shape, ready for yaml or json."""
    return explore.model_dump(mode="json", by_alias=True, exclude_none=True)

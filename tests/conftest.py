from hypothesis import HealthCheck, settings
from pathlib import Path
import json
import os

import pytest

# Strict CI profile: token streams are short, so 200 examples stay fast
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=200,
    suppress_health_check=[HealthCheck.too_slow],
    derandomize=False,
    print_blob=True,
)

# Light profile for mutation testing of the classifier
settings.register_profile(
    "mutation",
    max_examples=25,
    deadline=100,
    suppress_health_check=[HealthCheck.too_slow],
    derandomize=True,         # stable example sequence for reproducibility
)

# Default to CI unless caller overrides with HYPOTHESIS_PROFILE
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# Spec document the CLI tests load: one flag with a value slot, one without, one argument.
DEMO_SPEC_JSON = {
    "title": "Test Parser",
    "description": "Tests arguments",
    "flags": [
        {"title": "a", "description": "This is the a flag", "options": ["some"]},
        {"title": "d", "description": "This is the d flag"},
    ],
    "arguments": [{"title": "foo", "description": "This is the foo argument"}],
}


@pytest.fixture
def spec_file(tmp_path: Path):
    """Write the demo spec document to a temporary JSON file."""
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(DEMO_SPEC_JSON), encoding="utf-8")
    return path

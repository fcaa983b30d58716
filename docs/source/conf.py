"""Sphinx configuration of the secorules API reference."""
import pathlib
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version

ROOT: pathlib.Path = pathlib.Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

project = "secorules"
try:
    release = version(project)
except PackageNotFoundError:
    release = "0.1.0"

extensions = ["sphinx.ext.napoleon", "sphinx_rtd_theme", "autoapi.extension"]
exclude_patterns = []

html_theme = "sphinx_rtd_theme"

# Google style docstrings only
napoleon_google_docstring = True
napoleon_numpy_docstring = False

autoapi_type = "python"
autoapi_dirs = [str(ROOT / "secorules")]
autoapi_options = [
    "members",
    "undoc-members",
    "show-inheritance",
    "show-module-summary",
    "imported-members",
]
autoapi_member_order = "groupwise"
autoapi_python_class_content = "both"
# internal helpers, RuleInductionTimes is documented with secorules._induction
autoapi_ignore = ["*/_helpers.py", "*/_timing.py"]

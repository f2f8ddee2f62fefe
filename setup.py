import io
import os
from datetime import datetime
from typing import List

from setuptools import find_packages, setup
from setuptools_scm import get_version

ROOT_DIR = os.path.dirname(__file__)


def get_clustermap_version() -> str:
    version = get_version(
        root=ROOT_DIR or ".",
        write_to="clustermap/_version.py",
        fallback_version="0.1.0",
    )

    is_nightly_build = os.getenv("IS_NIGHTLY_BUILD", "false") == "true"
    if is_nightly_build:
        # the version would be something like 0.1.1.dev17+g6833d6f
        # but for nightly builds, we want to keep the version as 0.1.1.dev{datetime}
        version = (
            version.split("dev")[0] + f"dev{datetime.now().strftime('%Y%m%d%H')}"
        )

    return version


def get_path(*filepath) -> str:
    return os.path.join(ROOT_DIR, *filepath)


def read_readme() -> str:
    """Read the README file if present."""
    p = get_path("README.md")
    if os.path.isfile(p):
        return io.open(get_path("README.md"), "r", encoding="utf-8").read()
    else:
        return ""


def get_requirements(file_name: str = "requirements.txt") -> List[str]:
    """Get Python package dependencies from a requirements file."""
    with open(get_path(file_name)) as f:
        requirements = f.read().strip().split("\n")
    return [r for r in requirements if r and not r.startswith("#")]


def get_package_name() -> str:
    # nightly builds are published under the clustermap-nightly package
    if os.getenv("IS_NIGHTLY_BUILD", "false") == "true":
        return "clustermap-nightly"

    return "clustermap"


setup(
    name=get_package_name(),
    author="clustermap developers",
    version=get_clustermap_version(),
    license="Apache 2.0",
    description=(
        "Topology planning and port allocation for multi-node "
        "application-server clusters"
    ),
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: Apache Software License",
        "Topic :: System :: Clustering",
    ],
    packages=find_packages(exclude=("test", "test.*", "examples")),
    python_requires=">=3.11",
    install_requires=get_requirements(),
    extras_require={"test": get_requirements("requirements-test.txt")},
    entry_points={
        "console_scripts": [
            "clustermap=clustermap.__main__:main",
        ],
    },
)

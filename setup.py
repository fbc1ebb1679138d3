import os
import re
from pathlib import Path
from typing import Optional, Union

from packaging.version import Version
from setuptools import setup

LAST_RELEASE_VERSION = Version("0.1.0")
TAG_VERSION_PATTERN = re.compile(r"^v(\d+\.\d+\.\d+)$")


def get_last_version() -> Version:
    """
    Get the last released version, taken from NUMHIST_LAST_TAG if it holds a
    release tag such as v0.1.0, otherwise LAST_RELEASE_VERSION.
    """
    match = TAG_VERSION_PATTERN.match(os.getenv("NUMHIST_LAST_TAG", ""))

    return Version(match.group(1)) if match else LAST_RELEASE_VERSION


def get_next_version(
    build_type: str, build_iteration: Optional[Union[str, int]]
) -> tuple[Version, int]:
    """
    Get the next version based on the build type and iteration.
    - build_type == release: take the last version and add a post if build iteration
    - build_type == candidate: increment to next minor, add 'rc' with build iteration
    - build_type == nightly: increment to next minor, add 'a' with build iteration
    - build_type == alpha: increment to next minor, add 'a' with build iteration
    - build_type == dev: increment to next minor, add 'dev' with build iteration

    :param build_type: The type of build (release, candidate, nightly, alpha, dev).
    :param build_iteration: The build iteration number, defaults to 0.
    :returns: A tuple containing the next version and the build iteration used.
    """
    version = get_last_version()
    build_iteration = int(build_iteration or 0)

    if build_type == "release":
        if build_iteration:
            version = Version(f"{version.base_version}.post{build_iteration}")
        return version, build_iteration

    # not in release pathway, so need to increment to target next release version
    version = Version(f"{version.major}.{version.minor + 1}.0")

    if build_type == "candidate":
        version = Version(f"{version}.rc{build_iteration}")
    elif build_type in ["nightly", "alpha"]:
        version = Version(f"{version}.a{build_iteration}")
    else:
        # assume 'dev' if not in any of the above pathways
        version = Version(f"{version}.dev{build_iteration}")

    return version, build_iteration


def write_version_file() -> Version:
    """
    Write the version information to src/numhist/version.py.

    :returns: The version written.
    """
    build_type = os.getenv("NUMHIST_BUILD_TYPE", "dev").lower()
    version, build_iteration = get_next_version(
        build_type=build_type,
        build_iteration=os.getenv("NUMHIST_BUILD_ITERATION"),
    )
    version_py_path = Path(__file__).parent / "src" / "numhist" / "version.py"

    with version_py_path.open("w") as file:
        file.writelines(
            [
                f'version = "{version}"\n',
                f'build_type = "{build_type}"\n',
                f'build_iteration = "{build_iteration}"\n',
            ]
        )

    return version


setup(version=str(write_version_file()))

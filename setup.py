# test: ignore
import os
import sys
from subprocess import check_call
from typing import List

from setuptools import Command, find_packages, setup

__version__ = "0.1.0"
CWD = os.path.dirname(os.path.abspath(__file__))


class PyTest(Command):
    user_options: List[str] = []

    def initialize_options(self) -> None:
        pass

    def finalize_options(self) -> None:
        xml_out = os.path.join(".", "build", "test-results", "pytest.xml")
        if not os.path.exists(os.path.dirname(xml_out)):
            os.makedirs(os.path.dirname(xml_out))
        # -s is needed so py.test doesn't mess with stdin/stdout
        self.test_args = ["-s", "test", "--junitxml=%s" % xml_out]

    def run(self) -> None:
        # import here, cause outside the eggs aren't loaded
        import pytest

        # run the tests, then the format checks.
        errno = pytest.main(self.test_args)
        if errno != 0:
            sys.exit(errno)

        check_call(
            ["black", "--check", "src", "test"],
            cwd=CWD,
        )
        check_call(
            ["isort", "-c", "."],
            cwd=os.path.join(CWD, "src"),
        )
        check_call(
            ["isort", "-c", "."],
            cwd=os.path.join(CWD, "test"),
        )

        run_type_checking()

        sys.exit(errno)


class Formatter(Command):
    user_options: List[str] = []

    def initialize_options(self) -> None:
        pass

    def finalize_options(self) -> None:
        pass

    def run(self) -> None:
        check_call(
            ["black", "src", "test"],
            cwd=CWD,
        )
        check_call(
            ["isort", "."],
            cwd=os.path.join(CWD, "src"),
        )
        check_call(
            ["isort", "."],
            cwd=os.path.join(CWD, "test"),
        )
        run_type_checking()


def run_type_checking() -> None:
    check_call(
        [
            "mypy",
            "--ignore-missing-imports",
            "--follow-imports=silent",
            "--show-column-numbers",
            "--disallow-untyped-defs",
            os.path.join(CWD, "test"),
        ]
    )
    check_call(
        [
            "mypy",
            "--ignore-missing-imports",
            "--follow-imports=silent",
            "--show-column-numbers",
            "--disallow-untyped-defs",
            os.path.join(CWD, "src"),
        ]
    )

    check_call(
        ["flake8", "--ignore=E203,E231,F405,E501,W503", "src", "test", "setup.py"]
    )


class TypeChecking(Command):
    user_options: List[str] = []

    def initialize_options(self) -> None:
        pass

    def finalize_options(self) -> None:
        pass

    def run(self) -> None:
        run_type_checking()


setup(
    name="lustre-collector",
    version=__version__,
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.7",
    install_requires=[
        "PyYAML",
        "prometheus_client",
        "tabulate",
    ],
    extras_require={
        "test": ["pytest"],
        "dev": ["pytest", "black", "isort", "mypy", "flake8", "types-PyYAML"],
    },
    entry_points={
        "console_scripts": ["lustre-collector=lustre_collector.cli:main"],
    },
    cmdclass={"test": PyTest, "format": Formatter, "types": TypeChecking},
)

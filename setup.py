from pathlib import Path  # isort: skip

from setuptools import find_packages, setup  # isort: skip


HERE = Path(__file__).resolve().parent


def get_version():
    for line in (HERE / "sqltrace" / "__init__.py").read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip('"')
    raise RuntimeError("Unable to find version string.")


setup(
    name="sqltrace",
    version=get_version(),
    description="Transaction and span tracking with SQL statement obfuscation",
    long_description=(HERE / "README.md").read_text() if (HERE / "README.md").exists() else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*"]),
    package_data={
        "sqltrace": ["py.typed"],
    },
    zip_safe=False,
    python_requires=">=3.8",
    install_requires=[
        "attrs>=20",
        "envier~=0.6",
        "wrapt>=1.14",
    ],
    extras_require={
        "tests": [
            "pytest",
            "mock",
            "hypothesis",
        ],
    },
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

from setuptools import setup, find_packages

setup(
    name="phpns",
    version="0.1.0",
    description="Move PHP classes between namespaces and rewrite every reference to them",
    packages=find_packages(exclude=["test", "test.*"]),
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0",
        "pydantic>=2.0",
        "tomli>=2.0",
        "tomli-w>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "phpns=phpns.cli:cli",
        ],
    },
)

"""Setup configuration for the Radio and Traffic Aggregator API."""

from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith("#")]

setup(
    name="radio-traffic-aggregator-api",
    version="1.0.0",
    description="API aggregating now-playing songs across radio channels and current traffic messages",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "respx>=0.21",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "radio-aggregator=main:run",
        ],
    },
)

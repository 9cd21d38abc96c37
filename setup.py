"""Setup script for Rollout Agent."""

from setuptools import find_packages, setup

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

setup(
    name="rollout-agent",
    version="1.0.0",
    description="Rolls a pinned container image out to ECS and App Runner and watches the rollout",
    author="Platform Engineering",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "rollout-agent=rollout_agent.__main__:main",
        ],
    },
)

from setuptools import find_packages, setup

setup(
    name="teacup-report-sqlite",
    version="0.1.0",
    packages=find_packages(
        include=[
            "teacup_common",
            "teacup_common.*",
            "teacup_persistence",
            "teacup_persistence.*",
            "teacup_admin",
            "teacup_admin.*",
        ]
    ),
    install_requires=[
        "aiosqlite>=0.19.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-xdist>=3.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "teacup-report=teacup_admin.cli:cli",
        ],
    },
    python_requires=">=3.11",
)

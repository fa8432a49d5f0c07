#!/usr/bin/env python3
"""Setup configuration for gps-date package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read long description from README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="gps-date",
    version="1.0.0",
    description="Set the system clock from gpsd once at boot",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GPL-2.0-or-later",

    package_dir={"": "src"},
    packages=find_packages(where="src"),

    python_requires=">=3.9",

    install_requires=[
        "toml>=0.10.0",
    ],

    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
        ],
    },

    entry_points={
        "console_scripts": [
            "gps-date=gps_date.main:main",
        ],
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: No Input/Output (Daemon)",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Boot :: Init",
        "Topic :: System :: Networking :: Time Synchronization",
    ],

    keywords="gps gpsd time clock boot rtc ntp chrony",
)

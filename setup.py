#!/usr/bin/env python3
"""
Setup script for simcomphone.
"""

from setuptools import setup, find_packages

setup(
    name="simcomphone",
    version="0.1.0",
    description="Python library for using SIMCom cellular modems as a telephone: voice calls with PC audio, SMS and call services",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pyserial>=3.5",
        "numpy>=1.24",
        "sounddevice>=0.4.6",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "simcom-phone=simcomphone.cli:main",
        ],
    },
    keywords=["simcom", "sim7600", "modem", "cellular", "at-commands", "voice", "sms", "pcm"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Communications :: Telephony",
        "Topic :: Multimedia :: Sound/Audio",
        "Operating System :: POSIX :: Linux",
        "License :: OSI Approved :: MIT License",
    ],
)

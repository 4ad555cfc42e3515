"""
Setup script for Waypoint-DNS.
"""

from setuptools import find_namespace_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = fh.read().splitlines()

setup(
    name="waypoint-dns",
    version="0.1.0",
    description="Derive DNS endpoints from Contour, Ambassador, Gloo and Kong routing resources",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["waypoint_dns", "waypoint_dns.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "waypoint-dns=waypoint_dns.__main__:main",
        ],
    },
    include_package_data=True,
)

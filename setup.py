from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    readme = f.read()

setup(
    name="pbf2sqlite",
    license="GPL v3",
    version="1.0.0",
    description="Convert OpenStreetMap PBF files into SQLite databases",
    long_description=readme,
    long_description_content_type="text/markdown",
    author="Mikołaj Kuranowski",
    keywords="osm pbf sqlite openstreetmap",
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Database",
        "Topic :: Scientific/Engineering :: GIS",
    ],
    packages=find_packages(include=["pbf2sqlite", "pbf2sqlite.*"]),
    python_requires=">=3.8, <4",
    install_requires=[
        "protobuf>=4.21",
        "tomli>=1.1; python_version < '3.11'",
        "typing_extensions",
    ],
    entry_points={"console_scripts": ["pbf2sqlite=pbf2sqlite.cli:main"]},
)

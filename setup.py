from setuptools import setup, find_packages
from pathlib import Path


def read_readme():
    this_directory = Path(__file__).parent
    readme_file = this_directory / 'README.md'
    if readme_file.exists():
        return readme_file.read_text(encoding='utf-8')
    return ""


setup(
    name="meetnrun-db",
    version="0.1.0",
    author="MeetNRun Team",
    description="Database bootstrap and schema migration tools for the MeetNRun backend.",
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=["meetnrun", "meetnrun.*"]),
    package_data={
        'meetnrun.migrate.script': ['*.mako'],
    },
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "alembic>=1.13",
        "psycopg[binary]>=3.1",
        "psycopg-pool>=3.2",
        "pydantic>=2.5",
        "SQLAlchemy>=2.0",
        "typer>=0.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
    ],
    keywords="postgres migrations alembic psycopg",
    entry_points={
        'console_scripts': [
            'meetnrun-server=meetnrun.cli.server:cli_app',
            'meetnrun-migrate=meetnrun.cli.migrate:cli_app',
        ],
    },
)

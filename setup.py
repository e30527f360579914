"""
Setup script for the job-portal project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="job-portal",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "job_portal": ["templates/*.html", "templates/partials/*.html", "static/images/*"],
    },
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "flask>=3.0",
        "pymongo>=4.6",
        "python-dotenv>=1.0",
        "bcrypt>=4.1",
        "werkzeug>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-mock>=3.12",
        ],
    },
    entry_points={
        "console_scripts": [
            "job-portal=job_portal.app:main",
        ],
    },
)

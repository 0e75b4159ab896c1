"""
Setup script for the jobofficer job board.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="jobofficer",
    version="1.1.0",
    packages=find_packages(include=["jobboard", "jobboard.*", "frontend", "frontend.*"]),
    py_modules=["version"],
    include_package_data=True,
    package_data={"frontend": ["templates/*.html", "templates/partials/*.html"]},
    python_requires=">=3.11",
    install_requires=[
        "flask>=3.0",
        "pymongo>=4.6",
        "python-dotenv>=1.0",
        "pydantic>=2.5",
        "langchain-core>=0.2",
        "langchain-openai>=0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-mock>=3.12",
        ],
    },
)

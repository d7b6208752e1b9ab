# setup.py
from setuptools import setup, find_packages

setup(
    name="shiftcompass",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "python-dateutil",
        "PySide6",
        "matplotlib",
        "reportlab",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-qt",
            "pypdf",
        ],
    },
    entry_points={
        "console_scripts": [
            "shiftcompass=shiftcompass.main:run_wizard",
        ],
        "gui_scripts": [
            "shiftcompass-gui=shiftcompass.ui:main",
        ],
    },
)

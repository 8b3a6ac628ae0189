from setuptools import setup


setup(
    name="bus-ledger",
    version="0.1.0",
    description="Normalize, merge and reconcile loosely structured bus-line spreadsheet exports",
    packages=["bus_ledger", "bus_ledger.extractors"],
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "all": ["xlrd"],
    },
    entry_points={
        "console_scripts": [
            "bus-ledger=bus_ledger.cli:main",
        ]
    },
)

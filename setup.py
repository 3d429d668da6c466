# setup.py
from setuptools import setup, find_packages

install_requires = [
    # --- STATE & CONFIG ---
    "pydantic>=2.0.0",
    "python-dotenv>=1.0.0",
    "pyyaml>=6.0.0",

    # --- PERSISTENCE ---
    "duckdb>=0.10.0",

    # --- REPORTS & CONSOLE ---
    "jinja2>=3.0.0",
    "rich>=13.0.0",

    # --- UTILS ---
    "httpx>=0.27.0",  # Gemini client for the inventory assistant
]

setup(
    name="stockroom",
    version="0.1.0",
    description="Stockroom|Inventory state store",
    packages=find_packages(include=["stockroom", "stockroom.*"]),
    include_package_data=True,
    install_requires=install_requires,
    extras_require={
        # --- TESTS---
        "test": [
            "pytest",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "stockroom=stockroom.main:main",
        ],
    },
    python_requires=">=3.11",
)

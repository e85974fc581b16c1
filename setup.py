"""Setup configuration for Modsentry."""

from setuptools import setup, find_packages

setup(
    name="modsentry",
    version="0.1.0",
    description="AI-assisted chat moderation bot for Discord with a live dashboard",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.12",
    install_requires=[
        "py-cord>=2.6",
        "openai>=1.40",
        "jsonschema>=4.0",
        "aiosqlite>=0.20",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "fastapi>=0.110",
        "pydantic>=2.6",
        "uvicorn>=0.29",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "modsentry=modsentry.main:main",
        ],
    },
)

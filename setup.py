from setuptools import find_namespace_packages, setup

setup(
    name="subtitle-pipeline-backend",
    version="0.1.0",
    packages=find_namespace_packages(include=["services*", "shared*", "models*"]),
    py_modules=["app", "bootloader", "database"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "sqlalchemy>=2",
        "alembic",
        "redis",
        "aiohttp",
        "openai>=1",
        "python-dotenv",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    include_package_data=True,
    description="Video transcription and multi-language subtitle translation backend",
)

from setuptools import setup, find_packages

setup(
    name="borewell-ops",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "httpx>=0.24",
        "requests>=2.31",
        "python-dotenv>=1.0",
        "twilio>=8.10.0",
        "fastapi>=0.100",
        "uvicorn>=0.20",
        "reportlab>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "borewell-ops=borewell_ops.__main__:main",
        ],
    },
    python_requires=">=3.8",
)

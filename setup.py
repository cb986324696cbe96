from setuptools import find_packages, setup

setup(
    name="place-canvas",
    version="0.1.0",
    description="Shared packed-bitfield canvas server backed by Redis",
    author="Garrett Johnson",
    packages=find_packages(include=["place_server", "place_server.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi==0.118.0",
        "numpy==2.3.3",
        "pydantic==2.12.0",
        "redis==6.4.0",
        "uvicorn==0.37.0",
    ],
    extras_require={
        "test": [
            "httpx==0.28.1",
            "pytest==8.4.2",
            "pytest-asyncio==1.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "place-server=place_server.main:main",
        ],
    },
)

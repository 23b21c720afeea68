import os
from setuptools import setup, find_packages

# Read version from __init__.py
with open(os.path.join("marketlens", "__init__.py"), "r") as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split("=")[1].strip().strip('"').strip("'")
            break
    else:
        version = "0.1.0"

# Read long description from README
with open("README.md", "r") as f:
    long_description = f.read()

# Read requirements
with open("requirements.txt", "r") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="marketlens",
    version=version,
    description="eBay key verification and active/sold listing search backend",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="MarketLens Team",
    packages=find_packages(exclude=["*.tests", "*.tests.*", "tests"]),
    py_modules=["main"],
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
            "yarl>=1.8",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "marketlens-api=main:run",
        ],
    },
    include_package_data=True,
)

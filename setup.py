from setuptools import setup, find_namespace_packages

setup(
    name="newsroll",
    version="0.1.0",
    description="Newsroll - RSS/Atom/RDF news ingestion and normalization pipeline",
    packages=find_namespace_packages(include=["newsroll", "newsroll.*"]),
    install_requires=[
        "aiohttp>=3.8.0",
        "async-timeout>=4.0.0",
        "backoff>=1.11.0",
        "beautifulsoup4>=4.10.0",
        "lxml>=4.9.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "tqdm>=4.62.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "newsroll=newsroll.cli:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

from setuptools import setup, find_packages

setup(
    name="kalc",
    version="0.1.0",
    description="kalc — calculator language core with exact-looking result estimation",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    author="kalc Project",
    python_requires=">=3.9",
    packages=find_packages(),
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "kalc=kalc.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
)

from setuptools import setup, find_packages

setup(
    name="jp2bridge",
    version="0.1.0",
    description="JPEG2000 compression bridge driving the Kakadu kdu_compress executable",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "Pillow>=9.1.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "jp2bridge=jp2bridge.cli:main",
        ],
    },
    python_requires=">=3.8",
)

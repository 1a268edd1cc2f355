from setuptools import setup, find_packages

setup(
    name="blindwatermark",
    version="0.1.0",
    description="Blind DCT-domain watermarking - embed text in images and recover it without the original",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "Pillow>=9.0.0",
        "scipy>=1.7.0",
        "flask>=2.0.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "blindwatermark=blindwatermark.cli:main",
        ],
    },
    python_requires=">=3.7",
)

from setuptools import find_packages, setup


setup(
    name="stickerforge",
    version="0.1.0",
    description="Custom sticker geometry: smart cutlines, pricing and sheet nesting",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "numpy>=1.24",
        "Pillow>=10.0",
        "pyclipper>=1.3.0",
        "shapely==2.1.2",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "stickerforge=stickerforge.cli:main",
        ]
    },
)

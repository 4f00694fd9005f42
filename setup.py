import setuptools

with open("README.md", "r") as f:
    long_description = f.read()

setuptools.setup(
    name="seqkflib",
    version="0.0.1",
    install_requires=[
        "matplotlib",
        "numpy",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    description="Sequential Kalman filter measurement update for PPP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
)

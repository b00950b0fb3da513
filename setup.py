from setuptools import setup, find_packages

with open("README.md", "r") as f:
    long_description = f.read()
exec(open("etdcoeffs/__version__.py").read())

setup(
        name='etdcoeffs',
        version=__version__,
        description='Coefficients of exponential time-differencing Runge-Kutta schemes for stiff PDEs',
        long_description=long_description,
        long_description_content_type="text/markdown",
        classifiers=[
            "Programming Language :: Python :: 3",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.12",
            "License :: OSI Approved :: MIT License",
            "Operating System :: OS Independent",
            ],
        extras_require= {
            "dev": [
                "pytest","twine",
                ],
            },
        packages=find_packages(exclude=["tests", "tests.*", "docs"]),
        python_requires='>=3.9.0',
        install_requires=["numpy>=1.20.0","scipy>=1.6.0"]
)

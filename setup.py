"""
Setup configuration for mpdenoise - MP-PCA denoising of diffusion MRI
"""

from setuptools import setup, find_packages
import os

# Read README for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# Read requirements
def read_requirements():
    requirements = [
        # Medical imaging
        "nibabel>=5.0.0",

        # Numerics
        "numpy>=1.24.0",
        "scipy>=1.10.0",

        # Configuration and validation
        "pydantic>=2.0.0",
        "pyyaml>=6.0",

        # Utilities
        "tqdm>=4.65.0",
        "click>=8.1.0",
    ]
    return requirements

setup(
    name="mpdenoise",
    version="0.1.0",
    author="mpdenoise Team",
    description="Denoising of diffusion-weighted MRI and noise level estimation with MP-PCA",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Healthcare Industry",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
        "dev": [
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mpdenoise=mpdenoise.cli:denoise_command",
        ],
    },
    zip_safe=False,
    keywords=[
        "mri", "diffusion", "dwi", "denoising", "pca",
        "marchenko-pastur", "random-matrix-theory", "medical-imaging"
    ],
)

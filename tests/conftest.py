"""
Pytest configuration and fixtures for mpdenoise tests.
"""

import pytest
import numpy as np
import nibabel as nib

from mpdenoise.core import threads


@pytest.fixture(autouse=True)
def reset_thread_count(monkeypatch, tmp_path):
    """Start every test with no cached thread count and no user config."""
    monkeypatch.delenv(threads.NTHREADS_ENV_VAR, raising=False)
    monkeypatch.setenv("MPDENOISE_CONFIG", str(tmp_path / "no_such_config.yaml"))
    threads.reset_number_of_threads()
    yield
    threads.reset_number_of_threads()


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def small_dwi(rng):
    """Small 4D array indexed (x, y, z, v) with smooth signal and noise."""
    shape = (6, 7, 5, 12)
    x, y, z = np.meshgrid(*(np.linspace(0, 1, s) for s in shape[:3]), indexing='ij')
    decay = np.exp(-np.linspace(0, 2, shape[3]))
    signal = 1000 * (1 + x + y * z)[..., np.newaxis] * decay
    noise = rng.normal(0, 10, shape)
    return (signal + noise).astype(np.float32)


@pytest.fixture
def nifti_file(tmp_path, small_dwi):
    """Write small_dwi to a temporary NIfTI file."""
    affine = np.diag([2.0, 2.0, 2.0, 1.0])
    path = tmp_path / "dwi.nii.gz"
    nib.save(nib.Nifti1Image(small_dwi, affine), str(path))
    return path

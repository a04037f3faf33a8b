"""
Unit tests for volume access and NIfTI I/O.
"""

import nibabel as nib
import numpy as np
import pytest

from mpdenoise.data.volume import Volume, load_volume, save_volume


class TestVolume:
    """Test cases for the Volume class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.data = np.arange(4 * 5 * 6 * 3, dtype=np.float32).reshape(4, 5, 6, 3)
        self.volume = Volume(self.data)

    def test_shape_properties(self):
        """Test shape accessors."""
        assert self.volume.shape == (4, 5, 6, 3)
        assert self.volume.spatial_shape == (4, 5, 6)
        assert self.volume.n_volumes == 3
        assert self.volume.ndim == 4
        np.testing.assert_array_equal(self.volume.affine, np.eye(4))

    def test_invalid_dimensions(self):
        """Test 2D and 5D data are rejected."""
        with pytest.raises(ValueError, match="Expected 3D or 4D volume"):
            Volume(np.zeros((4, 4)))
        with pytest.raises(ValueError, match="Expected 3D or 4D volume"):
            Volume(np.zeros((2, 2, 2, 2, 2)))

    def test_row_access(self):
        """Test reading and writing the volume vector at the cursor."""
        self.volume.index = [1, 2, 3]
        np.testing.assert_array_equal(self.volume.row(), self.data[1, 2, 3])

        self.volume.set_row(np.array([-1.0, -2.0, -3.0]))
        np.testing.assert_array_equal(self.data[1, 2, 3], [-1.0, -2.0, -3.0])

    def test_scalar_access(self):
        """Test the value property of a 3D volume."""
        noise = Volume(np.zeros((2, 3, 4), dtype=np.float32))
        noise.index = [1, 2, 3]
        noise.value = 2.5

        assert noise.data[1, 2, 3] == 2.5
        assert noise.value == 2.5
        assert noise.n_volumes == 1

    def test_view_shares_data_not_cursor(self):
        """Test views see the same data with an independent cursor."""
        self.volume.index = [1, 1, 1]
        other = self.volume.view()

        other.index = [3, 4, 5]
        other.set_row(np.zeros(3))

        assert self.volume.index == [1, 1, 1]
        assert np.all(self.data[3, 4, 5] == 0)

    def test_is_out_of_bounds(self):
        """Test bounds checks on each side of each axis."""
        assert not self.volume.is_out_of_bounds((0, 0, 0))
        assert not self.volume.is_out_of_bounds((3, 4, 5))
        assert self.volume.is_out_of_bounds((-1, 0, 0))
        assert self.volume.is_out_of_bounds((0, 5, 0))
        assert self.volume.is_out_of_bounds((0, 0, 6))

    def test_validate(self):
        """Test only non-empty 4D volumes pass validation."""
        self.volume.validate()

        with pytest.raises(ValueError, match="Expected 4D volume"):
            Volume(np.zeros((3, 3, 3))).validate()
        with pytest.raises(ValueError, match="empty"):
            Volume(np.zeros((0, 3, 3, 2))).validate()

    def test_create_like(self):
        """Test allocation of output and noise map volumes."""
        affine = np.diag([2.0, 2.0, 2.0, 1.0])
        source = Volume(self.data.astype(np.int16), affine)

        out = Volume.create_like(source)
        noise = Volume.create_like(source, ndim=3)

        assert out.shape == (4, 5, 6, 3)
        assert out.dtype == np.float32
        assert np.all(out.data == 0)
        assert noise.shape == (4, 5, 6)
        np.testing.assert_array_equal(noise.affine, affine)

    def test_create_like_invalid_ndim(self):
        """Test only 3D or 4D outputs can be allocated."""
        with pytest.raises(ValueError, match="ndim must be 3 or 4"):
            Volume.create_like(self.volume, ndim=2)


class TestVolumeIO:
    """Test cases for NIfTI loading and saving."""

    def test_load_volume(self, nifti_file, small_dwi):
        """Test loading a 4D NIfTI file."""
        volume = load_volume(nifti_file)

        assert volume.shape == small_dwi.shape
        assert volume.dtype == np.float32
        np.testing.assert_allclose(volume.data, small_dwi, rtol=1e-6)
        np.testing.assert_array_equal(volume.affine, np.diag([2.0, 2.0, 2.0, 1.0]))

    def test_load_missing_file(self, tmp_path):
        """Test loading a non-existent file."""
        with pytest.raises(FileNotFoundError):
            load_volume(tmp_path / "missing.nii.gz")

    def test_load_corrupt_file(self, tmp_path):
        """Test loading a file that is not NIfTI."""
        path = tmp_path / "corrupt.nii"
        path.write_bytes(b"not an image")

        with pytest.raises(ValueError, match="Failed to load NIfTI file"):
            load_volume(path)

    def test_save_noise_map(self, nifti_file, tmp_path):
        """Test a 3D volume derived from a loaded header is saved as float32."""
        source = load_volume(nifti_file)
        noise = Volume.create_like(source, ndim=3)
        noise.data[...] = 1.5
        path = tmp_path / "noise.nii.gz"

        save_volume(noise, path)

        img = nib.load(str(path))
        assert img.shape == source.spatial_shape
        assert img.get_data_dtype() == np.float32
        np.testing.assert_allclose(img.get_fdata(), 1.5)
        np.testing.assert_array_equal(img.affine, source.affine)

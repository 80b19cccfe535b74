"""
Unit tests for image input validation.
"""

import pytest

from app.services.identification.image_input import prepare_image_url, validate_image
from app.services.outcomes import ErrorKind


class TestValidateImage:

    def test_https_url_accepted(self):
        assert validate_image("https://cdn.example.com/photos/toaster.jpg") is None

    def test_url_without_host_rejected(self):
        assert validate_image("https://") == ErrorKind.INVALID_IMAGE_URL

    def test_url_with_spaces_rejected(self):
        assert validate_image("https://cdn.example.com/my photo.jpg") == ErrorKind.INVALID_IMAGE_URL

    def test_bare_base64_accepted(self, base64_image):
        assert validate_image(base64_image) is None

    def test_data_url_accepted(self, base64_image):
        assert validate_image(f"data:image/png;base64,{base64_image}") is None

    def test_wrapped_base64_accepted(self, base64_image):
        wrapped = "\n".join(base64_image[i:i + 76] for i in range(0, len(base64_image), 76))
        assert validate_image(wrapped) is None

    def test_not_base64(self):
        assert validate_image("invalid-image") == ErrorKind.INVALID_IMAGE_FORMAT

    def test_too_small(self):
        assert validate_image("abc123") == ErrorKind.IMAGE_TOO_SMALL

    def test_too_small_data_url(self):
        assert validate_image("data:image/jpeg;base64,abc123") == ErrorKind.IMAGE_TOO_SMALL

    @pytest.mark.parametrize("image", [None, "", 42, b"bytes"])
    def test_wrong_type(self, image):
        assert validate_image(image) == ErrorKind.INVALID_IMAGE_FORMAT


class TestPrepareImageUrl:

    def test_url_unchanged(self):
        url = "https://cdn.example.com/photos/toaster.jpg"
        assert prepare_image_url(url) == url

    def test_bare_base64_gets_jpeg_prefix(self, base64_image):
        assert prepare_image_url(base64_image) == f"data:image/jpeg;base64,{base64_image}"

    def test_data_url_kept(self, base64_image):
        data_url = f"data:image/png;base64,{base64_image}"
        assert prepare_image_url(data_url) == data_url

    def test_whitespace_removed(self, base64_image):
        assert prepare_image_url(f" {base64_image[:50]}\n{base64_image[50:]} ") == (
            f"data:image/jpeg;base64,{base64_image}"
        )

import unittest
from pathlib import Path

from services import storage
from services.auth import NotAuthenticatedError, SessionContext
from services.storage import safe_filename, upload_image


class TestUploadImage(unittest.TestCase):
    def test_writes_under_folder_and_returns_public_url(self) -> None:
        url = upload_image(SessionContext(user_id="alice"), b"\xff\xd8data", "my photo.jpg", folder="waste")

        self.assertTrue(url.startswith("http://testserver/uploads/waste/"))
        self.assertTrue(url.endswith("_my_photo.jpg"))
        object_name = url.rsplit("/", 1)[1]
        timestamp = object_name.split("_", 1)[0]
        self.assertTrue(timestamp.isdigit())
        self.assertEqual((Path(storage.UPLOAD_DIR) / "waste" / object_name).read_bytes(), b"\xff\xd8data")

    def test_requires_signed_in_user(self) -> None:
        before = set(Path(storage.UPLOAD_DIR).rglob("*"))
        with self.assertRaises(NotAuthenticatedError):
            upload_image(None, b"data", "x.jpg", folder="street")
        self.assertEqual(set(Path(storage.UPLOAD_DIR).rglob("*")), before)


class TestSafeFilename(unittest.TestCase):
    def test_strips_directories_and_unsafe_characters(self) -> None:
        self.assertEqual(safe_filename("../../etc/passwd"), "passwd")
        self.assertEqual(safe_filename("street view (1).png"), "street_view_1_.png")
        self.assertEqual(safe_filename(None), "image.jpg")
        self.assertEqual(safe_filename("..."), "image.jpg")


if __name__ == "__main__":
    unittest.main()

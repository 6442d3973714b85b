import base64
import unittest
from unittest.mock import MagicMock

import dropbox
from dropbox.files import DeletedMetadata, FileMetadata, FolderMetadata, ListFolderResult

from core.types import DeleteJobStatus, EntryTag
from providers.dropbox_provider import DropboxStorageClient


def union(kind, value=None):
    """Stand-in for an SDK union: is_<kind>() is True and get_<kind>() returns value."""
    obj = MagicMock()
    for tag in ("success", "failure", "async_job_id", "complete", "in_progress", "failed"):
        getattr(obj, f"is_{tag}").return_value = (tag == kind)
    getattr(obj, f"get_{kind}").return_value = value
    return obj


class TestDropboxStorageClient(unittest.TestCase):
    def setUp(self):
        self.dbx = MagicMock(spec=dropbox.Dropbox)
        self.client = DropboxStorageClient(self.dbx)

    def test_list_folder_maps_entries(self):
        """Files and folders are tagged; deleted entries are dropped."""
        self.dbx.files_list_folder.return_value = ListFolderResult(
            entries=[
                FileMetadata(name="A.txt", id="id:a", path_lower="/a.txt", path_display="/A.txt"),
                FolderMetadata(name="Sub", id="id:s", path_lower="/sub", path_display="/Sub"),
                DeletedMetadata(name="gone.txt", path_lower="/gone.txt", path_display="/gone.txt"),
            ],
            cursor="c1",
            has_more=True,
        )

        page = self.client.list_folder("/", limit=50)

        self.dbx.files_list_folder.assert_called_once_with("", include_deleted=False, limit=50)
        self.assertEqual([e.tag for e in page.entries], [EntryTag.FILE, EntryTag.FOLDER])
        self.assertEqual(page.entries[0].path_display, "/A.txt")
        self.assertEqual(page.entries[0].to_record().id, "id:a")
        self.assertTrue(page.has_more)
        self.assertEqual(page.cursor, "c1")

    def test_path_normalization(self):
        self.assertEqual(self.client._normalize_path("/"), "")
        self.assertEqual(self.client._normalize_path(""), "")
        self.assertEqual(self.client._normalize_path("Photos"), "/Photos")
        self.assertEqual(self.client._normalize_path("/Photos"), "/Photos")

    def test_list_folder_continue(self):
        self.dbx.files_list_folder_continue.return_value = ListFolderResult(entries=[], cursor="c2", has_more=False)
        page = self.client.list_folder_continue("c1")

        self.dbx.files_list_folder_continue.assert_called_once_with("c1")
        self.assertEqual(page.entries, [])
        self.assertFalse(page.has_more)

    def test_delete_batch_async(self):
        self.dbx.files_delete_batch.return_value = union("async_job_id", "dbjid:42")
        launch = self.client.delete_batch(["/a.txt", "/b.txt"])

        args = self.dbx.files_delete_batch.call_args[0][0]
        self.assertEqual([a.path for a in args], ["/a.txt", "/b.txt"])
        self.assertFalse(launch.complete)
        self.assertEqual(launch.async_job_id, "dbjid:42")

    def test_delete_batch_complete_with_entry_failure(self):
        batch_result = MagicMock(entries=[union("success"), union("failure", "path_lookup/not_found")])
        self.dbx.files_delete_batch.return_value = union("complete", batch_result)

        launch = self.client.delete_batch(["/a.txt", "/b.txt"])

        self.assertTrue(launch.complete)
        self.assertTrue(launch.entries[0].success)
        self.assertFalse(launch.entries[1].success)
        self.assertEqual(launch.entries[1].path, "/b.txt")

    def test_delete_batch_check_states(self):
        self.dbx.files_delete_batch.return_value = union("async_job_id", "dbjid:1")
        self.client.delete_batch(["/a.txt"])

        self.dbx.files_delete_batch_check.return_value = union("in_progress")
        self.assertEqual(self.client.delete_batch_check("dbjid:1").status, DeleteJobStatus.IN_PROGRESS)

        self.dbx.files_delete_batch_check.return_value = union("failed", "too_many_write_operations")
        check = self.client.delete_batch_check("dbjid:1")
        self.assertEqual(check.status, DeleteJobStatus.FAILED)
        self.assertEqual(check.reason, "too_many_write_operations")

        self.dbx.files_delete_batch_check.return_value = union("complete", MagicMock(entries=[union("success")]))
        check = self.client.delete_batch_check("dbjid:1")
        self.assertEqual(check.status, DeleteJobStatus.COMPLETE)
        self.assertEqual(check.entries[0].path, "/a.txt")

    def test_get_thumbnail_batch(self):
        """Successful entries are decoded from base64; failures carry the error."""
        success = union("success", MagicMock(thumbnail=base64.b64encode(b"JPEG").decode()))
        success.get_success.return_value.metadata.name = "a.jpg"
        self.dbx.files_get_thumbnail_batch.return_value = MagicMock(
            entries=[success, union("failure", "unsupported_extension")])

        results = self.client.get_thumbnail_batch(["/a.jpg", "/b.txt"])

        sent = self.dbx.files_get_thumbnail_batch.call_args[0][0]
        self.assertEqual([a.path for a in sent], ["/a.jpg", "/b.txt"])
        self.assertTrue(sent[0].size.is_w128h128())
        self.assertEqual(results[0].data, b"JPEG")
        self.assertEqual(results[0].name, "a.jpg")
        self.assertFalse(results[1].ok)
        self.assertEqual(results[1].name, "b.txt")

    def test_current_account(self):
        account = MagicMock(email="me@example.com")
        account.name.display_name = "Me"
        self.dbx.users_get_current_account.return_value = account

        self.assertEqual(self.client.current_account(), "Me (me@example.com)")


if __name__ == '__main__':
    unittest.main()

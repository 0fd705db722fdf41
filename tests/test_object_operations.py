"""
Unit tests for object operations of the S3 filesystem.
"""

import errno
import io
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from Configuration import S3FileSystemConfiguration
from FileSystem.attributes import BasicFileAttributes, S3ObjectAttributes
from FileSystem.client_provider import FixedS3ClientProvider
from FileSystem.exceptions import UnsupportedOperationError
from FileSystem.provider import S3FileSystemProvider
from FileSystem.registry import FileSystemRegistry


def not_found(operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, operation)


class FakeBucket:
    """Serves head_object and ranged get_object calls from a dict of keys."""

    def __init__(self, objects):
        self.objects = objects
        self.ranges = []

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise not_found()
        return {"ContentLength": len(self.objects[Key]), "ETag": '"etag"'}

    def get_object(self, Bucket, Key, Range):
        start, end = (int(n) for n in Range[len("bytes="):].split("-"))
        self.ranges.append((start, end))
        return {"Body": io.BytesIO(self.objects[Key][start:end + 1])}


class TestObjectOperations(unittest.TestCase):
    """Test cases for S3FileSystem object operations."""

    def setUp(self):
        """Set up test fixtures."""
        self.provider = S3FileSystemProvider(registry=FileSystemRegistry(), configuration=S3FileSystemConfiguration())
        self.fs = self.provider.new_file_system("s3://mybucket", {"max_fragment_size": 4, "max_fragment_number": 2})
        self.mock_client = MagicMock()
        self.fs.client_provider = FixedS3ClientProvider(self.mock_client)

    def tearDown(self):
        """Tear down test fixtures."""
        self.fs.close()

    def use_bucket(self, objects):
        bucket = FakeBucket(objects)
        self.mock_client.head_object.side_effect = bucket.head_object
        self.mock_client.get_object.side_effect = bucket.get_object
        return bucket

    def set_pages(self, *pages):
        paginator = MagicMock()
        paginator.paginate.return_value = list(pages)
        self.mock_client.get_paginator.return_value = paginator
        return paginator

    # --- exists ---

    def test_exists_file(self):
        """Test that an existing object exists."""
        self.use_bucket({"a/b.txt": b"hello"})
        self.assertTrue(self.fs.exists("/a/b.txt"))
        self.mock_client.list_objects_v2.assert_not_called()

    def test_exists_missing(self):
        """Test that a missing key in an existing bucket does not exist."""
        self.use_bucket({})
        self.mock_client.list_objects_v2.return_value = {"KeyCount": 0}
        self.assertFalse(self.fs.exists("/missing.txt"))

    def test_exists_directory_prefix(self):
        """Test that a key prefix counts as a directory."""
        self.use_bucket({})
        self.mock_client.list_objects_v2.return_value = {"KeyCount": 1, "Contents": [{"Key": "a/b.txt"}]}
        self.assertTrue(self.fs.exists("/a"))
        self.assertEqual(self.mock_client.list_objects_v2.call_args.kwargs["Prefix"], "a/")

    def test_exists_missing_bucket_raises(self):
        """Test that a missing bucket is an error, not a missing file."""
        self.use_bucket({})
        error = ClientError({"Error": {"Code": "NoSuchBucket", "Message": "No such bucket"}}, "ListObjectsV2")
        self.mock_client.list_objects_v2.side_effect = error
        with self.assertRaises(ClientError) as ctx:
            self.fs.exists("/a.txt")
        self.assertIs(ctx.exception, error)

    def test_exists_root(self):
        """Test that the root exists when the bucket answers."""
        self.assertTrue(self.fs.exists("/"))
        self.mock_client.head_bucket.assert_called_once_with(Bucket="mybucket")

    # --- read channels ---

    def test_read_across_fragments(self):
        """Test that reads span fragments and only the needed ranges are fetched."""
        bucket = self.use_bucket({"data.bin": b"0123456789"})
        with self.fs.open_input_stream("/data.bin") as stream:
            self.assertEqual(stream.size(), 10)
            self.assertEqual(stream.read(), b"0123456789")
        self.assertEqual(bucket.ranges, [(0, 3), (4, 7), (8, 9)])

    def test_read_with_seek(self):
        """Test seek and tell on a read channel."""
        bucket = self.use_bucket({"data.bin": b"0123456789"})
        with self.fs.open_input_stream("/data.bin") as stream:
            self.assertEqual(stream.seek(6), 6)
            self.assertEqual(stream.read(2), b"67")
            self.assertEqual(stream.tell(), 8)
            stream.seek(-3, io.SEEK_END)
            self.assertEqual(stream.read(), b"789")
            stream.seek(5)
            self.assertEqual(stream.read(1), b"5")
            with self.assertRaises(ValueError):
                stream.seek(-1)
        # Fragment 1 is cached, fragment 2 is read once
        self.assertEqual(bucket.ranges, [(4, 7), (8, 9)])

    def test_read_closed_channel_fails(self):
        """Test that a closed channel refuses reads and is no longer open."""
        self.use_bucket({"data.bin": b"abc"})
        stream = self.fs.open_input_stream("/data.bin")
        stream.close()
        self.assertNotIn(stream, self.fs.get_open_channels())
        with self.assertRaises(ValueError):
            stream.read()

    def test_open_missing_file(self):
        """Test that opening a missing object raises FileNotFoundError."""
        self.use_bucket({})
        with self.assertRaises(FileNotFoundError):
            self.fs.open_input_stream("/missing.txt")
        self.assertEqual(len(self.fs.get_open_channels()), 0)
        self.mock_client.head_bucket.assert_called_once_with(Bucket="mybucket")

    def test_open_in_missing_bucket_raises(self):
        """Test that a missing bucket is not reported as a missing file."""
        self.use_bucket({})
        error = ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")
        self.mock_client.head_bucket.side_effect = error
        with self.assertRaises(ClientError) as ctx:
            self.fs.open_input_stream("/a.txt")
        self.assertIs(ctx.exception, error)
        self.assertEqual(len(self.fs.get_open_channels()), 0)

    def test_open_directory(self):
        """Test that directories cannot be opened as streams."""
        with self.assertRaises(IsADirectoryError):
            self.fs.open_input_stream("/dir/")
        with self.assertRaises(IsADirectoryError):
            self.fs.open_output_stream("/dir/")

    # --- write channels ---

    def test_write_uploads_on_close(self):
        """Test that written bytes are uploaded to the key when the stream closes."""
        uploaded = {}

        def capture(fileobj, bucket, key):
            uploaded[(bucket, key)] = fileobj.read()

        self.mock_client.upload_fileobj.side_effect = capture

        with self.fs.open_output_stream("/out/result.txt") as stream:
            stream.write(b"hello ")
            stream.write(b"world")
            self.mock_client.upload_fileobj.assert_not_called()
            self.assertIn(stream, self.fs.get_open_channels())

        self.assertEqual(uploaded, {("mybucket", "out/result.txt"): b"hello world"})
        self.assertEqual(len(self.fs.get_open_channels()), 0)

    def test_failed_upload_still_closes(self):
        """Test that an upload error is raised and the channel is released."""
        self.mock_client.upload_fileobj.side_effect = OSError("network down")
        stream = self.fs.open_output_stream("/out/result.txt")
        with self.assertRaises(OSError):
            stream.close()
        self.assertTrue(stream.closed)
        self.assertEqual(len(self.fs.get_open_channels()), 0)

    def test_abort_does_not_upload(self):
        """Test that an aborted write channel uploads nothing."""
        stream = self.fs.open_output_stream("/out/result.txt")
        stream.write(b"partial")
        stream.abort()
        self.assertTrue(stream.closed)
        self.mock_client.upload_fileobj.assert_not_called()

    # --- listing ---

    def test_list_directory(self):
        """Test that immediate children are listed, directory marker excluded."""
        paginator = self.set_pages(
            {"CommonPrefixes": [{"Prefix": "data/2024/"}], "Contents": [{"Key": "data/"}, {"Key": "data/a.csv"}]},
            {"Contents": [{"Key": "data/b.json"}]},
        )
        children = self.fs.list_directory("/data")
        self.assertEqual([str(c) for c in children], ["/data/2024/", "/data/a.csv", "/data/b.json"])
        self.assertTrue(children[0].is_directory())
        paginator.paginate.assert_called_once_with(Bucket="mybucket", Prefix="data/", Delimiter="/")

    def test_list_directory_with_pattern(self):
        """Test that the pattern filters child names."""
        self.set_pages({"Contents": [{"Key": "data/a.csv"}, {"Key": "data/b.json"}]})
        children = self.fs.list_directory("/data/", "glob:*.csv")
        self.assertEqual([str(c) for c in children], ["/data/a.csv"])

    def test_list_files_glob(self):
        """Test that list_files lists under the literal prefix and filters with the glob."""
        self.use_bucket({})
        paginator = self.set_pages({
            "Contents": [
                {"Key": "logs/"},
                {"Key": "logs/z.csv"},
                {"Key": "logs/2024/a.csv"},
                {"Key": "logs/2024/a.json"},
            ]
        })
        files = self.fs.list_files("/logs/**/*.csv")
        self.assertEqual([str(f) for f in files], ["/logs/2024/a.csv", "/logs/z.csv"])
        paginator.paginate.assert_called_once_with(Bucket="mybucket", Prefix="logs/")

    def test_list_files_single_file(self):
        """Test that a plain file path lists just that file."""
        self.use_bucket({"a/b.txt": b"x"})
        self.assertEqual([str(f) for f in self.fs.list_files("/a/b.txt")], ["/a/b.txt"])
        self.mock_client.get_paginator.assert_not_called()

    # --- directories and removal ---

    def test_mkdirs(self):
        """Test that mkdirs writes a directory marker."""
        self.fs.mkdirs("/a/b")
        self.mock_client.put_object.assert_called_once_with(Bucket="mybucket", Key="a/b/", Body=b"")

    def test_remove_file(self):
        """Test that a file is removed with DeleteObject."""
        self.use_bucket({"a.txt": b"x"})
        self.fs.remove("/a.txt")
        self.mock_client.delete_object.assert_called_once_with(Bucket="mybucket", Key="a.txt")

    def test_remove_non_empty_directory(self):
        """Test that a non-empty directory is not removed without recursive."""
        self.use_bucket({})
        self.mock_client.list_objects_v2.return_value = {"Contents": [{"Key": "dir/"}, {"Key": "dir/a.txt"}]}
        with self.assertRaises(OSError) as ctx:
            self.fs.remove("/dir")
        self.assertEqual(ctx.exception.errno, errno.ENOTEMPTY)
        self.mock_client.delete_object.assert_not_called()

    def test_remove_empty_directory(self):
        """Test that an empty directory marker is removed."""
        self.use_bucket({})
        self.mock_client.list_objects_v2.return_value = {"Contents": [{"Key": "dir/"}]}
        self.fs.remove("/dir/")
        self.mock_client.delete_object.assert_called_once_with(Bucket="mybucket", Key="dir/")

    def test_remove_recursive(self):
        """Test that a recursive remove deletes every key under the prefix."""
        self.use_bucket({})
        self.set_pages({"Contents": [{"Key": "dir/"}, {"Key": "dir/a.txt"}, {"Key": "dir/sub/b.txt"}]})
        self.mock_client.delete_objects.return_value = {}
        self.fs.remove("/dir", recursive=True)

        request = self.mock_client.delete_objects.call_args.kwargs["Delete"]
        self.assertEqual([o["Key"] for o in request["Objects"]], ["dir/", "dir/a.txt", "dir/sub/b.txt"])

    def test_remove_missing(self):
        """Test that removing nothing raises FileNotFoundError."""
        self.use_bucket({})
        self.mock_client.list_objects_v2.return_value = {}
        with self.assertRaises(FileNotFoundError):
            self.fs.remove("/nothing")

    def test_remove_root(self):
        """Test that the root cannot be removed."""
        with self.assertRaises(UnsupportedOperationError):
            self.fs.remove("/", recursive=True)

    # --- attributes ---

    def test_read_attributes(self):
        """Test the basic and s3 attribute views of an object."""
        modified = datetime(2024, 1, 2, tzinfo=timezone.utc)
        self.mock_client.head_object.return_value = {
            "ContentLength": 42,
            "LastModified": modified,
            "ETag": '"abc"',
            "ContentType": "text/csv",
            "StorageClass": "STANDARD",
            "Metadata": {"owner": "team"},
        }

        basic = self.fs.read_attributes("/a.csv")
        self.assertIs(type(basic), BasicFileAttributes)
        self.assertEqual(basic.size, 42)
        self.assertEqual(basic.last_modified_time, modified)
        self.assertTrue(basic.is_regular_file)
        self.assertFalse(basic.is_directory)

        detailed = self.fs.read_attributes("/a.csv", "s3")
        self.assertIsInstance(detailed, S3ObjectAttributes)
        self.assertEqual(detailed.content_type, "text/csv")
        self.assertEqual(detailed.metadata, {"owner": "team"})

    def test_read_attributes_directory(self):
        """Test that a key prefix reads as a directory."""
        self.use_bucket({})
        self.mock_client.list_objects_v2.return_value = {"KeyCount": 1}
        attributes = self.fs.read_attributes("/dir")
        self.assertTrue(attributes.is_directory)
        self.assertEqual(attributes.size, 0)

    def test_read_attributes_unsupported_view(self):
        """Test that unknown views are rejected."""
        with self.assertRaises(UnsupportedOperationError):
            self.fs.read_attributes("/a.csv", "posix")

    # --- copy and move ---

    def test_copy(self):
        """Test that copy issues CopyObject within the bucket."""
        self.fs.copy("/a.txt", "/b/a.txt")
        self.mock_client.copy_object.assert_called_once_with(
            CopySource={"Bucket": "mybucket", "Key": "a.txt"}, Bucket="mybucket", Key="b/a.txt"
        )

    def test_copy_missing_source(self):
        """Test that copying a missing object raises FileNotFoundError."""
        self.mock_client.copy_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, "CopyObject"
        )
        with self.assertRaises(FileNotFoundError):
            self.fs.copy("/a.txt", "/b.txt")

    def test_move(self):
        """Test that move copies then deletes the source."""
        self.fs.move("/a.txt", "/b.txt")
        self.mock_client.copy_object.assert_called_once()
        self.mock_client.delete_object.assert_called_once_with(Bucket="mybucket", Key="a.txt")


if __name__ == "__main__":
    unittest.main()

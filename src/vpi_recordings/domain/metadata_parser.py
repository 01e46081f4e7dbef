"""Parser for VPI XML media metadata documents."""

from typing import BinaryIO
from xml.etree.ElementTree import Element, ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeElementTree

from vpi_recordings.domain.models import CandidateRecord
from vpi_recordings.exceptions import MalformedMetadataError
from vpi_recordings.logging import setup_logging

logger = setup_logging()

EXPORT_SUMMARY_TAG = "ExportSummary"
OBJECTS_TAG = "Objects"
MEDIA_TAG = "Media"

ATTR_FILE_NAME = "FileName"
ATTR_TYPE = "Type"
ATTR_RESULT = "Result"


class MetadataParser:
    """
    Extracts candidate recordings from VPI metadata documents.

    Two document shapes are accepted:

    - ``ExportSummary > Objects > Media*``: one record per Media element.
    - ``Media`` as the root element: exactly one record.

    DOCTYPE declarations, entity declarations and external references are
    rejected outright rather than ignored.
    """

    def parse(self, document: bytes | BinaryIO) -> list[CandidateRecord]:
        """
        Parses a metadata document into candidate records.

        Args:
            document: The raw XML, as bytes or a readable binary stream.

        Returns:
            Candidate records in document order (may be empty).

        Raises:
            MalformedMetadataError: If the document is not well-formed,
                declares a DTD or entities, or has an unsupported root.
        """
        root = self._load_root(document)

        if root.tag == EXPORT_SUMMARY_TAG:
            records = self._parse_export_summary(root)
        elif root.tag == MEDIA_TAG:
            records = [self._build_record(root)]
        else:
            raise MalformedMetadataError(
                f"Invalid XML: root element must be '{EXPORT_SUMMARY_TAG}' "
                f"or '{MEDIA_TAG}', found '{root.tag}'"
            )

        logger.debug("Parsed metadata document", extra={"record_count": len(records)})
        return records

    def is_valid_metadata(self, document: bytes | BinaryIO) -> bool:
        """Checks that a document is well-formed and has a supported root."""
        try:
            root = self._load_root(document)
        except MalformedMetadataError as e:
            logger.debug("Metadata validation failed", extra={"error": str(e)})
            return False
        return root.tag in (EXPORT_SUMMARY_TAG, MEDIA_TAG)

    def _load_root(self, document: bytes | BinaryIO) -> Element:
        if document is None:
            raise MalformedMetadataError("Metadata document cannot be None")
        data = document if isinstance(document, bytes) else document.read()
        try:
            return SafeElementTree.fromstring(
                data,
                forbid_dtd=True,
                forbid_entities=True,
                forbid_external=True,
            )
        except DefusedXmlException as e:
            logger.warning("Rejected unsafe metadata document", extra={"error": str(e)})
            raise MalformedMetadataError(f"Invalid XML: {e}", e) from e
        except ParseError as e:
            raise MalformedMetadataError(f"Invalid XML: {e}", e) from e

    def _parse_export_summary(self, root: Element) -> list[CandidateRecord]:
        objects = root.find(f".//{OBJECTS_TAG}")
        if objects is None:
            logger.error("Missing Objects element in ExportSummary")
            raise MalformedMetadataError(
                f"Invalid XML: missing {OBJECTS_TAG} element in {EXPORT_SUMMARY_TAG}"
            )
        return [self._build_record(media) for media in objects.iter(MEDIA_TAG)]

    def _build_record(self, media: Element) -> CandidateRecord:
        fields: dict[str, str] = {}
        for child in media:
            # first occurrence wins on duplicate tags
            if isinstance(child.tag, str) and child.tag not in fields:
                fields[child.tag] = "".join(child.itertext())

        return CandidateRecord(
            file_name=media.get(ATTR_FILE_NAME, ""),
            media_type=media.get(ATTR_TYPE, ""),
            result=media.get(ATTR_RESULT, ""),
            fields=fields,
        )

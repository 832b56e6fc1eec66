"""Repository URL extraction from package URLs (PURLs).

Only the ``repository_url`` qualifier is consulted, e.g.
``pkg:npm/left-pad@1.3.0?repository_url=https://github.com/left-pad/left-pad``.
"""

from packageurl import PackageURL, normalize_qualifiers

from forges.exceptions import InvalidRepoURLError, MissingRepositoryURLError

REPOSITORY_URL_QUALIFIER = "repository_url"


def repository_url_from_purl(purl: PackageURL | str) -> str:
    """Return the repository URL carried by a package URL.

    Args:
        purl: Parsed PackageURL or its string form

    Raises:
        InvalidRepoURLError: If a string is not a valid package URL
        MissingRepositoryURLError: If there is no repository_url qualifier
    """
    if isinstance(purl, str):
        try:
            purl = PackageURL.from_string(purl)
        except ValueError as e:
            raise InvalidRepoURLError(purl, f"invalid package URL: {e}") from e

    qualifiers = purl.qualifiers or {}
    if isinstance(qualifiers, str):
        qualifiers = normalize_qualifiers(qualifiers, encode=False) or {}

    repo_url = (qualifiers.get(REPOSITORY_URL_QUALIFIER) or "").strip()
    if not repo_url:
        raise MissingRepositoryURLError(purl.to_string())
    return repo_url

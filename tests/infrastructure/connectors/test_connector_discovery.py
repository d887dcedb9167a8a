"""Tests for connector discovery and source construction."""

from lovesync.config.settings import Settings
from lovesync.domain.interfaces import TrackSource
from lovesync.infrastructure.connectors import (
    LastFMConnector,
    ListenBrainzConnector,
    build_sources,
    discover_connectors,
)


class TestDiscoverConnectors:
    """Test the connector registry."""

    def test_finds_every_service(self):
        """Test that each connector module is registered under its module name."""
        assert set(discover_connectors()) == {"lastfm", "listenbrainz", "spotify", "subsonic"}

    def test_registry_is_cached(self):
        """Test that discovery runs once."""
        assert discover_connectors() is discover_connectors()

    def test_configs_have_descriptions(self):
        """Test the shape of every registration."""
        for config in discover_connectors().values():
            assert config["description"]
            assert callable(config["factory"])


class TestBuildSources:
    """Test instantiation from settings."""

    def test_only_configured_services(self):
        """Test that services without credentials are left out."""
        config = Settings(
            lastfm_key="key",
            lastfm_secret="secret",
            lastfm_username="me",
            lastfm_password="pw",
            listenbrainz_token="tok",
            listenbrainz_username="me",
            subsonic_server="",
            spotify_client_id="",
        )

        sources = build_sources(config)

        assert set(sources) == {"lastfm", "listenbrainz"}
        assert isinstance(sources["lastfm"], LastFMConnector)
        assert isinstance(sources["listenbrainz"], ListenBrainzConnector)

    def test_sources_satisfy_protocol(self):
        """Test that every connector implements TrackSource."""
        config = Settings(
            subsonic_server="http://music.local",
            subsonic_username="me",
            subsonic_password="pw",
            lastfm_key="key",
            lastfm_secret="secret",
            lastfm_username="me",
            lastfm_password="pw",
            listenbrainz_token="tok",
            listenbrainz_username="me",
            spotify_client_id="id",
            spotify_client_secret="secret",
        )

        sources = build_sources(config)

        assert len(sources) == 4
        for name, source in sources.items():
            assert isinstance(source, TrackSource)
            assert source.name == name

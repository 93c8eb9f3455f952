"""
Model: ManifestDefinition
Append-only log of every manifest fetched from the platform
"""

from ghost.db import db


class ManifestDefinition(db.Model):
    __tablename__ = "destiny_manifest_definition"

    # Creation timestamp (UTC), also defines which record is current
    id = db.Column(db.DateTime, primary_key=True)
    version = db.Column(db.String(64), index=True)
    json = db.Column(db.JSON, nullable=False)

    @property
    def payload(self):
        return self.json

    def content_path(self, locale):
        """Relative URL of the content database for a locale, if advertised"""
        paths = (self.json or {}).get("mobileWorldContentPaths") or {}
        return paths.get(locale)

    def to_dict(self):
        return {
            "id": self.id.isoformat() if self.id else None,
            "version": self.version,
            "manifest": self.json,
        }

    def __repr__(self):
        return f"<ManifestDefinition {self.id} version={self.version}>"

"""Pulumi infrastructure for hosting Supabase Studio on AWS Amplify."""

__version__ = "0.1.0"

"""Main Pulumi program for Supabase Studio hosting."""

import pulumi

from studio_infra.config import StudioConfig
from studio_infra.supabase_studio import SupabaseStudio

config = StudioConfig.from_pulumi()

studio = SupabaseStudio("SupabaseStudio", config=config)

pulumi.export("app_id", studio.app.app_id)
pulumi.export("app_name", studio.app.app_name)
pulumi.export("default_domain", studio.app.default_domain)
pulumi.export("prod_branch_name", studio.prod_branch.branch_name)
pulumi.export("prod_branch_url", studio.prod_branch_url)
pulumi.export("execution_role_arn", studio.identity.role_arn)
pulumi.export("build_spec", studio.build_spec)

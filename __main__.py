import pulumi
from dotenv import load_dotenv

from gitlab_ec2.config.load import load_config, load_region
from gitlab_ec2.planner.errors import ValidationError
from gitlab_ec2.planner.plan import plan
from gitlab_ec2.providers.aws import create_aws_provider, materialize

# 1) load config (.env first, then the process environment)
load_dotenv()
cfg = load_config()
region = load_region()

# 2) plan
try:
    resource_plan = plan(cfg, region=region)
except ValidationError as e:
    pulumi.log.error(f"{e} Please check your .env file.")
    raise

# 3) create aws provider
aws_provider = create_aws_provider(region)

# 4) declare resources
outputs = materialize(resource_plan, region=region, provider=aws_provider)

# 5) export outputs
for name, value in outputs.items():
    pulumi.export(name, value)

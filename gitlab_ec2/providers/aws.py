import json
import string
from typing import Any, Callable

import pulumi
import pulumi_aws as aws
import pulumi_random as random

from ..constants import (
    ANY_IPV4,
    KIND_DNS_RECORD,
    KIND_EIP_ASSOCIATION,
    KIND_ELASTIC_IP,
    KIND_INSTANCE,
    KIND_INSTANCE_PROFILE,
    KIND_ROLE,
    KIND_SCHEDULE,
    KIND_SECRET,
    KIND_SECURITY_GROUP,
)
from ..planner.models import Ref, ResourceDescriptor, ResourcePlan


Resolve = Callable[[Any], Any]


def create_aws_provider(region: str) -> aws.Provider:
    return aws.Provider("aws", region=region)


def allowed_specials(excluded: str) -> str:
    return "".join(ch for ch in string.punctuation if ch not in excluded)


def _secret(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    p = d.properties
    password = random.RandomPassword(
        f"{d.name}-value",
        length=p["length"],
        special=True,
        override_special=allowed_specials(p["excluded_characters"]),
        opts=opts,
    )
    secret = aws.secretsmanager.Secret(d.name, description=p["description"], opts=opts)
    aws.secretsmanager.SecretVersion(
        f"{d.name}-version",
        secret_id=secret.id,
        secret_string=password.result.apply(
            lambda pw: json.dumps({"username": p["username"], "password": pw})
        ),
        opts=opts,
    )
    return secret


def _security_group(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    p = d.properties
    egress = []
    if p["allow_all_outbound"]:
        egress.append(
            aws.ec2.SecurityGroupEgressArgs(protocol="-1", from_port=0, to_port=0, cidr_blocks=[ANY_IPV4])
        )
    return aws.ec2.SecurityGroup(
        d.name,
        vpc_id=resolve(p["vpc_id"]),
        description=p["description"],
        ingress=[
            aws.ec2.SecurityGroupIngressArgs(
                protocol=rule.protocol,
                from_port=rule.port,
                to_port=rule.port,
                cidr_blocks=[rule.cidr],
                description=rule.description,
            )
            for rule in p["ingress"]
        ],
        egress=egress,
        opts=opts,
    )


def _role(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    p = d.properties
    role = aws.iam.Role(
        d.name,
        assume_role_policy=json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Action": "sts:AssumeRole",
                "Effect": "Allow",
                "Principal": {"Service": p["service"]},
            }],
        }),
        opts=opts,
    )

    for policy in p["managed_policies"]:
        aws.iam.RolePolicyAttachment(
            f"{d.name}-{policy}",
            role=role.name,
            policy_arn=f"arn:aws:iam::aws:policy/{policy}",
            opts=opts,
        )

    if p["statements"]:
        statements = [
            pulumi.Output.all(*[resolve(r) for r in s["resources"]]).apply(
                lambda arns, actions=s["actions"]: {"Effect": "Allow", "Action": actions, "Resource": list(arns)}
            )
            for s in p["statements"]
        ]
        aws.iam.RolePolicy(
            f"{d.name}-policy",
            role=role.id,
            policy=pulumi.Output.all(*statements).apply(
                lambda xs: json.dumps({"Version": "2012-10-17", "Statement": list(xs)})
            ),
            opts=opts,
        )
    return role


def _instance_profile(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    return aws.iam.InstanceProfile(d.name, role=resolve(d.properties["role"]), opts=opts)


def _elastic_ip(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    return aws.ec2.Eip(d.name, domain=d.properties["domain"], tags=dict(d.properties["tags"]), opts=opts)


def first_subnet_id(ids: list[str], vpc_id: str) -> str:
    if not ids:
        raise ValueError(f"VPC {vpc_id!r} has no subnets; set SUBNET_ID")
    return sorted(ids)[0]


def _first_subnet(vpc_id: str, opts: pulumi.ResourceOptions) -> pulumi.Output[str]:
    subnets = aws.ec2.get_subnets_output(
        filters=[aws.ec2.GetSubnetsFilterArgs(name="vpc-id", values=[vpc_id])],
        opts=pulumi.InvokeOptions(provider=opts.provider),
    )
    return subnets.ids.apply(lambda ids: first_subnet_id(ids, vpc_id))


def _instance(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions, *, region: str) -> pulumi.Resource:
    p = d.properties
    script = p["user_data"]
    volume = p["root_volume"]
    subnet_id = p["subnet_id"] or _first_subnet(p["vpc_id"], opts)

    return aws.ec2.Instance(
        d.name,
        ami=p["images"][region],
        instance_type=p["instance_type"],
        subnet_id=subnet_id,
        vpc_security_group_ids=[resolve(ref) for ref in p["security_groups"]],
        iam_instance_profile=resolve(p["instance_profile"]),
        user_data=pulumi.Output.from_input(resolve(script.secret)).apply(script.render),
        root_block_device=aws.ec2.InstanceRootBlockDeviceArgs(
            volume_size=volume["size_gb"],
            volume_type=volume["volume_type"],
            encrypted=volume["encrypted"],
        ),
        opts=opts,
    )


def _eip_association(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    return aws.ec2.EipAssociation(
        d.name,
        allocation_id=resolve(d.properties["allocation_id"]),
        instance_id=resolve(d.properties["instance_id"]),
        opts=opts,
    )


def _dns_record(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    p = d.properties
    return aws.route53.Record(
        d.name,
        zone_id=p["zone_id"],
        name=f"{p['name']}.{p['zone_name']}",
        type=p["type"],
        ttl=p["ttl"],
        records=[resolve(r) for r in p["records"]],
        opts=opts,
    )


def _schedule(d: ResourceDescriptor, resolve: Resolve, opts: pulumi.ResourceOptions) -> pulumi.Resource:
    p = d.properties
    retry = p["retry_policy"]
    return aws.scheduler.Schedule(
        d.name,
        name=p["schedule_name"],
        description=p["description"],
        schedule_expression=p["schedule_expression"],
        schedule_expression_timezone=p["schedule_expression_timezone"],
        flexible_time_window=aws.scheduler.ScheduleFlexibleTimeWindowArgs(mode=p["flexible_time_window"]),
        state=p["state"],
        target=aws.scheduler.ScheduleTargetArgs(
            arn=p["target_arn"],
            role_arn=resolve(p["role_arn"]),
            input=pulumi.Output.all(*[resolve(r) for r in p["instance_ids"]]).apply(
                lambda ids: json.dumps({"InstanceIds": list(ids)})
            ),
            retry_policy=aws.scheduler.ScheduleTargetRetryPolicyArgs(
                maximum_event_age_in_seconds=retry["maximum_event_age_in_seconds"],
                maximum_retry_attempts=retry["maximum_retry_attempts"],
            ),
        ),
        opts=opts,
    )


_BUILDERS = {
    KIND_SECRET: _secret,
    KIND_SECURITY_GROUP: _security_group,
    KIND_ROLE: _role,
    KIND_INSTANCE_PROFILE: _instance_profile,
    KIND_ELASTIC_IP: _elastic_ip,
    KIND_EIP_ASSOCIATION: _eip_association,
    KIND_DNS_RECORD: _dns_record,
    KIND_SCHEDULE: _schedule,
}


def materialize(
    plan: ResourcePlan,
    *,
    region: str,
    provider: aws.Provider | None = None,
) -> dict[str, Any]:
    """
    Create one Pulumi resource (or a small group) per plan descriptor.

    Descriptors are walked in plan order, so every Ref points at a resource
    that already exists. Returns the plan outputs with Refs resolved, ready
    for pulumi.export.
    """
    opts = pulumi.ResourceOptions(provider=provider)
    created: dict[str, pulumi.Resource] = {}

    def resolve(value: Any) -> Any:
        if isinstance(value, Ref):
            return getattr(created[value.resource], value.attribute)
        return value

    for d in plan.resources:
        if d.kind == KIND_INSTANCE:
            created[d.name] = _instance(d, resolve, opts, region=region)
            continue
        builder = _BUILDERS.get(d.kind)
        if builder is None:
            raise ValueError(f"Unknown resource kind {d.kind!r} for {d.name!r}")
        created[d.name] = builder(d, resolve, opts)

    pulumi.log.info(f"Declared {len(created)} planned resources in {region}")
    return {key: resolve(value) for key, value in plan.outputs.items()}
